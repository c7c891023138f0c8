from typing import Any, Dict, List, Optional, Tuple

from cloud_machine.create_instances.types import CreateRequest, RemoteSnapshot, Tag
from cloud_machine.provider_interface import IComputeProvider


def snapshot(instance_id: str, state: str = "running", **kwargs) -> RemoteSnapshot:
    return RemoteSnapshot(instance_id=instance_id, state=state, **kwargs)


class FakeProvider(IComputeProvider):
    """In-memory provider.

    ``to_create`` is handed out one snapshot per ``create_instances`` call.
    ``remote[id]`` is the sequence of snapshots returned by successive fetches;
    the last one keeps being returned.
    """

    def __init__(self):
        self.to_create: List[RemoteSnapshot] = []
        self.remote: Dict[str, List[RemoteSnapshot]] = {}
        self.duplicated: Dict[str, List[RemoteSnapshot]] = {}
        self.fetch_errors: Dict[str, Exception] = {}
        self.create_error: Optional[Exception] = None
        self.tag_error: Optional[Exception] = None
        self.calls: List[Tuple[str, Any]] = []

    def fetch_instances(self, instance_id: str) -> List[RemoteSnapshot]:
        self.calls.append(("fetch", instance_id))
        if instance_id in self.fetch_errors:
            raise self.fetch_errors[instance_id]
        if instance_id in self.duplicated:
            return list(self.duplicated[instance_id])
        sequence = self.remote.get(instance_id)
        if not sequence:
            return []
        if len(sequence) > 1:
            return [sequence.pop(0)]
        return [sequence[0]]

    def create_instances(self, request: CreateRequest) -> List[RemoteSnapshot]:
        self.calls.append(("create", request))
        if self.create_error is not None:
            raise self.create_error
        if not self.to_create:
            return []
        return [self.to_create.pop(0)]

    def tag_instance(self, instance_id: str, tags: List[Tag]):
        self.calls.append(("tag", (instance_id, tags)))
        if self.tag_error is not None:
            raise self.tag_error

    def terminate_instances(self, instance_ids: List[str]):
        self.calls.append(("terminate", instance_ids))

    def reboot_instances(self, instance_ids: List[str]):
        self.calls.append(("reboot", instance_ids))

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeLog:
    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def _add(self, level, message):
        self.messages.append((level, message))

    def debug(self, message):
        self._add("DEBUG", message)

    def info(self, message):
        self._add("INFO", message)

    def success(self, message):
        self._add("SUCCESS", message)

    def warning(self, message):
        self._add("WARNING", message)

    def error(self, message):
        self._add("ERROR", message)

    def levels(self) -> List[str]:
        return [level for level, _ in self.messages]
