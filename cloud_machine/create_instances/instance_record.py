from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .machine_config import VolumeSpec
from .types import NAME_TAG_KEY, LifecyclePhase, RemoteSnapshot


@dataclass
class InstanceRecord:
    name: str
    instance_type: str = ""
    image_id: str = ""
    region: str = ""
    key_name: str = ""
    security_groups: List[str] = field(default_factory=list)
    subnet_id: str = ""
    availability_zone: str = ""
    cloud_config: str = ""
    ebs_optimized: bool = False
    enable_api_termination: bool = False
    placement_group_name: str = ""
    shutdown_behavior: str = ""
    volumes: List[VolumeSpec] = field(default_factory=list)

    instance_id: str = ""
    state: str = ""
    phase: LifecyclePhase = LifecyclePhase.Unprovisioned
    failure: Optional[Exception] = None
    snapshot: Optional[RemoteSnapshot] = None

    @property
    def private_ip_address(self) -> str:
        return self.snapshot.private_ip_address if self.snapshot else ""

    @property
    def public_ip_address(self) -> str:
        return self.snapshot.public_ip_address if self.snapshot else ""

    def template_context(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "instance_id": self.instance_id,
            "instance_type": self.instance_type,
            "image_id": self.image_id,
            "region": self.region,
            "key_name": self.key_name,
            "security_groups": ",".join(self.security_groups),
            "subnet_id": self.subnet_id,
            "availability_zone": self.availability_zone,
            "placement_group_name": self.placement_group_name,
            "shutdown_behavior": self.shutdown_behavior,
            "ebs_optimized": str(self.ebs_optimized).lower(),
        }


def merge_snapshot(record: InstanceRecord, snapshot: RemoteSnapshot):
    """Overwrite the remote-owned fields of ``record`` with ``snapshot``."""
    record.snapshot = snapshot
    record.instance_id = snapshot.instance_id
    record.instance_type = snapshot.instance_type
    record.image_id = snapshot.image_id
    record.subnet_id = snapshot.subnet_id
    record.key_name = snapshot.key_name
    record.availability_zone = snapshot.availability_zone
    record.ebs_optimized = snapshot.ebs_optimized
    record.security_groups = list(snapshot.security_groups)
    record.state = snapshot.state

    name = snapshot.tag_value(NAME_TAG_KEY)
    if name is not None:
        record.name = name
