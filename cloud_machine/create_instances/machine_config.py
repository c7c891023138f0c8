from pathlib import Path
from typing import List, Optional, Tuple

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ClusterConfigError


class VolumeSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    size: int = 8
    volume_type: str = "gp3"
    device_name: str = ""
    iops: Optional[int] = None
    delete_on_termination: bool = True


class MachineTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    instance_type: str = ""
    image_id: str = ""
    region: str = ""
    key_name: str = ""
    security_groups: Tuple[str, ...] = ()
    subnet_id: str = ""
    availability_zone: str = ""
    # path to a cloud-config template rendered into user data
    cloud_config: str = ""
    ebs_optimized: bool = False
    enable_api_termination: bool = False
    placement_group_name: str = ""
    shutdown_behavior: str = ""
    volumes: Tuple[VolumeSpec, ...] = ()


class ClusterDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    image_id: str = ""
    region: str = ""
    key_name: str = ""
    security_groups: Tuple[str, ...] = ()
    subnet_id: str = ""
    availability_zone: str = ""


class ClusterEntry(BaseModel):
    machine: str
    # ge=0 so that a negative count is rejected while loading, before any remote call
    nodes: int = Field(default=1, ge=0)


class ClusterFile(BaseModel):
    default: ClusterDefaults = ClusterDefaults()
    clusters: List[ClusterEntry] = []

    @property
    def total_nodes(self):
        return sum([cluster.nodes for cluster in self.clusters])


class MachineFile(BaseModel):
    instance: MachineTemplate
    volumes: List[VolumeSpec] = []

    def as_template(self) -> MachineTemplate:
        if not self.volumes:
            return self.instance
        return self.instance.model_copy(update={"volumes": self.instance.volumes + tuple(self.volumes)})


def _load_toml(file_path: Path) -> dict:
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ClusterConfigError(f"Cannot read config file {file_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ClusterConfigError(f"Invalid TOML in {file_path}: {e}") from e


def load_cluster_file(file_path: str) -> ClusterFile:
    data = _load_toml(Path(file_path))
    try:
        return ClusterFile(**data)
    except ValidationError as e:
        raise ClusterConfigError(f"Invalid cluster file {file_path}: {e}") from e


def load_machine_template(file_path: str) -> MachineTemplate:
    path = Path(file_path)
    data = _load_toml(path)
    try:
        template = MachineFile(**data).as_template()
    except ValidationError as e:
        raise ClusterConfigError(f"Invalid machine file {file_path}: {e}") from e

    if template.cloud_config:
        cloud_config = Path(template.cloud_config)
        if not cloud_config.is_absolute():
            cloud_config = path.parent / cloud_config
        if not cloud_config.is_file():
            raise ClusterConfigError(f"Cloud config {cloud_config} of machine {file_path} does not exist",
                                     record_name=template.name)
        template = template.model_copy(update={"cloud_config": str(cloud_config)})

    return template


def load_clusters(file_path: str) -> Tuple[ClusterFile, List[Tuple[MachineTemplate, int]]]:
    """Load a cluster file and every machine file it references.

    Machine paths are relative to the cluster file. All files are read up front
    so a broken template is reported before the first instance is created.
    """
    cluster_file = load_cluster_file(file_path)
    base_dir = Path(file_path).parent

    machines = []
    for entry in cluster_file.clusters:
        machine_path = Path(entry.machine)
        if not machine_path.is_absolute():
            machine_path = base_dir / machine_path
        machines.append((load_machine_template(str(machine_path)), entry.nodes))
    return cluster_file, machines
