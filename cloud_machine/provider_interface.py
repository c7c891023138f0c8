from abc import ABC, abstractmethod
from typing import List

from .create_instances.types import CreateRequest, RemoteSnapshot, Tag


class IComputeProvider(ABC):
    """Compute API of one region. Failures are raised as ``ProviderAPIError``."""

    @abstractmethod
    def fetch_instances(self, instance_id: str) -> List[RemoteSnapshot]:
        """Return every instance matching ``instance_id``; an empty list means not found."""
        ...

    @abstractmethod
    def create_instances(self, request: CreateRequest) -> List[RemoteSnapshot]:
        ...

    @abstractmethod
    def tag_instance(self, instance_id: str, tags: List[Tag]):
        ...

    @abstractmethod
    def terminate_instances(self, instance_ids: List[str]):
        ...

    @abstractmethod
    def reboot_instances(self, instance_ids: List[str]):
        ...
