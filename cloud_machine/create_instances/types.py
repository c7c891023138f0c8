from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


NAME_TAG_KEY = "Name"


@dataclass(frozen=True)
class Tag:
    key: str
    value: str


@dataclass(frozen=True)
class RemoteSnapshot:
    """Provider view of one instance at the time it was fetched."""
    instance_id: str
    instance_type: str = ""
    image_id: str = ""
    subnet_id: str = ""
    key_name: str = ""
    availability_zone: str = ""
    ebs_optimized: bool = False
    security_groups: Tuple[str, ...] = ()
    state: str = ""
    tags: Tuple[Tag, ...] = ()
    private_ip_address: str = ""
    public_ip_address: str = ""
    launch_time: Optional[str] = None

    def tag_value(self, key: str) -> Optional[str]:
        for tag in self.tags:
            if tag.key == key:
                return tag.value
        return None


@dataclass(frozen=True)
class BlockDevice:
    device_name: str
    volume_size: int
    volume_type: str = ""
    iops: Optional[int] = None
    delete_on_termination: bool = True


@dataclass(frozen=True)
class CreateRequest:
    image_id: str
    instance_type: str
    key_name: str = ""
    security_groups: Tuple[str, ...] = ()
    subnet_id: str = ""
    ebs_optimized: bool = False
    disable_api_termination: bool = True
    placement_group_name: Optional[str] = None
    shutdown_behavior: Optional[str] = None
    user_data: Optional[bytes] = None
    block_devices: Tuple[BlockDevice, ...] = field(default_factory=tuple)


class LifecyclePhase(Enum):
    Unprovisioned = "unprovisioned"
    Provisioning = "provisioning"
    Polling = "polling"
    Confirmed = "confirmed"
    Failed = "failed"
    Cancelled = "cancelled"


class ErrorPolicy(Enum):
    Abort = "abort"
    Continue = "continue"
