from cloud_machine.cleanup_instances.__main__ import cleanup_hosts, group_by_region
from cloud_machine.create_instances.instance_lifecycle import reboot
from cloud_machine.host_spec import HostSpec

from tests.fakes import FakeProvider


HOSTS = [
    HostSpec(name="web-1", instance_id="i-1", region="us-east-1"),
    HostSpec(name="db-1", instance_id="i-2", region="eu-west-1"),
    HostSpec(name="web-2", instance_id="i-3", region="us-east-1"),
]


def test_group_by_region_keeps_order():
    groups = group_by_region(HOSTS)
    assert list(groups) == ["us-east-1", "eu-west-1"]
    assert [h.instance_id for h in groups["us-east-1"]] == ["i-1", "i-3"]


def test_cleanup_terminates_per_region():
    providers = {}

    def _provider_for(region_id):
        providers[region_id] = FakeProvider()
        return providers[region_id]

    failed = cleanup_hosts(HOSTS, _provider_for)

    assert failed == []
    assert providers["us-east-1"].calls == [("terminate", ["i-1"]), ("terminate", ["i-3"])]
    assert providers["eu-west-1"].calls == [("terminate", ["i-2"])]


def test_cleanup_reboot_and_missing_id_reported():
    provider = FakeProvider()
    hosts = HOSTS[:1] + [HostSpec(name="ghost", instance_id="", region="us-east-1")]

    failed = cleanup_hosts(hosts, lambda region_id: provider, action=reboot)

    assert provider.calls == [("reboot", ["i-1"])]
    assert [h.name for h in failed] == ["ghost"]
