from pathlib import Path

import pytest

from cloud_machine.create_instances.errors import ClusterConfigError
from cloud_machine.create_instances.machine_config import load_cluster_file, load_clusters, load_machine_template


CLUSTER_TOML = """
[default]
image_id = "ami-default"
region = "us-east-1"
key_name = "k1"
security_groups = ["sg-1"]

[[clusters]]
machine = "machines/web.toml"
nodes = 2

[[clusters]]
machine = "machines/db.toml"
nodes = 1
"""

WEB_TOML = """
[instance]
name = "web"
instance_type = "t3.micro"
cloud_config = "web-cloud-config.yml"

[[volumes]]
name = "data"
size = 50
device_name = "/dev/sdf"
"""

DB_TOML = """
[instance]
name = "db"
instance_type = "m5.large"
region = "eu-west-1"
enable_api_termination = true
"""


def _write_cluster(tmp_path: Path) -> Path:
    machines = tmp_path / "machines"
    machines.mkdir()
    (machines / "web.toml").write_text(WEB_TOML)
    (machines / "web-cloud-config.yml").write_text("hostname: ${name}\n")
    (machines / "db.toml").write_text(DB_TOML)
    cluster = tmp_path / "cluster.toml"
    cluster.write_text(CLUSTER_TOML)
    return cluster


def test_load_clusters_reads_all_machines(tmp_path: Path):
    cluster_file, machines = load_clusters(str(_write_cluster(tmp_path)))

    assert cluster_file.default.region == "us-east-1"
    assert cluster_file.default.security_groups == ("sg-1",)
    assert cluster_file.total_nodes == 3

    (web, web_nodes), (db, db_nodes) = machines
    assert (web.name, web_nodes) == ("web", 2)
    assert (db.name, db_nodes) == ("db", 1)
    assert web.volumes[0].name == "data"
    assert web.volumes[0].size == 50
    assert db.region == "eu-west-1"
    assert db.enable_api_termination is True


def test_cloud_config_path_is_relative_to_machine_file(tmp_path: Path):
    _, machines = load_clusters(str(_write_cluster(tmp_path)))
    web = machines[0][0]
    assert Path(web.cloud_config) == tmp_path / "machines" / "web-cloud-config.yml"


def test_missing_cloud_config_is_rejected_up_front(tmp_path: Path):
    machine = tmp_path / "web.toml"
    machine.write_text(WEB_TOML)

    with pytest.raises(ClusterConfigError) as exc_info:
        load_machine_template(str(machine))

    assert exc_info.value.record_name == "web"


def test_missing_cluster_file_raises(tmp_path: Path):
    with pytest.raises(ClusterConfigError):
        load_cluster_file(str(tmp_path / "missing.toml"))


def test_invalid_toml_raises(tmp_path: Path):
    cluster = tmp_path / "cluster.toml"
    cluster.write_text("[default\nregion = ")

    with pytest.raises(ClusterConfigError):
        load_cluster_file(str(cluster))


def test_negative_node_count_is_config_error(tmp_path: Path):
    cluster = tmp_path / "cluster.toml"
    cluster.write_text('[[clusters]]\nmachine = "web.toml"\nnodes = -1\n')

    with pytest.raises(ClusterConfigError):
        load_cluster_file(str(cluster))


def test_machine_without_name_is_rejected(tmp_path: Path):
    machine = tmp_path / "web.toml"
    machine.write_text('[instance]\ninstance_type = "t3.micro"\n')

    with pytest.raises(ClusterConfigError):
        load_machine_template(str(machine))


def test_missing_machine_file_raises(tmp_path: Path):
    cluster = tmp_path / "cluster.toml"
    cluster.write_text('[[clusters]]\nmachine = "nope.toml"\nnodes = 1\n')

    with pytest.raises(ClusterConfigError):
        load_clusters(str(cluster))
