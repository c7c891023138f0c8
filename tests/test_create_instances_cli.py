import json
from pathlib import Path

import pytest

from cloud_machine.aws_provider.client_factory import AwsComputeProvider
from cloud_machine.create_instances.__main__ import main, make_parser

from tests.fakes import FakeProvider, snapshot


@pytest.fixture
def provider(monkeypatch):
    fake = FakeProvider()
    monkeypatch.setattr(AwsComputeProvider, "new", classmethod(lambda cls, region_id: fake))
    return fake


def _cluster(tmp_path: Path, nodes: int) -> Path:
    (tmp_path / "web.toml").write_text('[instance]\nname = "web"\ninstance_type = "t3.micro"\n')
    cluster = tmp_path / "cluster.toml"
    cluster.write_text(f'[default]\nregion = "us-east-1"\n\n[[clusters]]\nmachine = "web.toml"\nnodes = {nodes}\n')
    return cluster


def test_parser_defaults():
    args = make_parser().parse_args(["cluster.toml"])
    assert args.output_json == "./hosts.json"
    assert args.continue_on_error is False
    assert args.timeout is None
    assert args.poll_interval == 2.0


def test_main_writes_hosts_file(tmp_path: Path, provider):
    provider.to_create = [snapshot("i-1", private_ip_address="10.0.0.1"), snapshot("i-2")]
    out = tmp_path / "hosts.json"

    assert main([str(_cluster(tmp_path, 2)), "-o", str(out)]) == 0

    hosts = json.loads(out.read_text())
    assert [h["name"] for h in hosts] == ["web-1", "web-2"]
    assert [h["instance_id"] for h in hosts] == ["i-1", "i-2"]


def test_main_reports_failure(tmp_path: Path, provider):
    provider.to_create = [snapshot("i-1")]
    out = tmp_path / "hosts.json"

    assert main([str(_cluster(tmp_path, 3)), "-o", str(out), "--continue-on-error"]) == 1

    hosts = json.loads(out.read_text())
    assert [h["name"] for h in hosts] == ["web-1"]
    assert provider.call_names().count("create") == 3


def test_main_bad_cluster_file(tmp_path: Path, provider):
    assert main([str(tmp_path / "missing.toml")]) == 1
    assert provider.calls == []
