from dataclasses import dataclass
import threading
from typing import Optional

from loguru import logger

from utils.wait_until import SYSTEM_CLOCK, Clock, WaitUntilCancelledError, WaitUntilTimeoutError, wait_until

from ..provider_interface import IComputeProvider
from .cloud_config import render_user_data
from .errors import (CreateFailedError, MissingIdentifierError, NotFoundError, ProviderAPIError,
                     ProviderInvariantError, ProvisionError, ProvisioningCancelledError, TaggingError,
                     WaitTimeoutError)
from .instance_record import InstanceRecord, merge_snapshot
from .types import NAME_TAG_KEY, BlockDevice, CreateRequest, LifecyclePhase, RemoteSnapshot, Tag


DEFAULT_POLL_INTERVAL = 2.0
RUNNING_STATE = "running"


@dataclass
class WaitOptions:
    poll_interval: float = DEFAULT_POLL_INTERVAL
    # None waits until the state is reached or a load fails
    timeout: Optional[float] = None
    clock: Clock = SYSTEM_CLOCK
    cancel: Optional[threading.Event] = None


def get(provider: IComputeProvider, record: InstanceRecord, *, wait: Optional[WaitOptions] = None, log=logger) -> RemoteSnapshot:
    """Create the instance if the record has no id yet, otherwise adopt the existing one.

    On success the record holds the remote fields and is ``Confirmed``. On failure the
    error is raised with the record identity bound to it, and the record keeps whatever
    was merged last.
    """
    try:
        if record.instance_id == "":
            log.info(f"Creating new instance {record.name}...")
            record.phase = LifecyclePhase.Provisioning
            snapshot = create(provider, record, wait=wait, log=log)
            title = "NEW INSTANCE"
        else:
            log.info(f"Loading instance id <{record.instance_id}>...")
            snapshot = load(provider, record, log=log)
            record.phase = LifecyclePhase.Confirmed
            title = "LOADING INSTANCE"
    except ProvisionError as e:
        e.bind_record(record.name, record.instance_id)
        _mark_failed(record, e)
        log.error(f"Instance {record.name} failed: {e}")
        raise
    except Exception as e:
        _mark_failed(record, e)
        log.error(f"Instance {record.name} failed unexpectedly: {e!r}")
        raise

    _log_summary(record, title, log)
    return snapshot


def load(provider: IComputeProvider, record: InstanceRecord, *, log=logger) -> RemoteSnapshot:
    if record.instance_id == "":
        raise MissingIdentifierError("To load an instance you need to pass its id", record_name=record.name)

    matches = provider.fetch_instances(record.instance_id)
    if len(matches) == 0:
        raise NotFoundError(record.instance_id, record_name=record.name)
    elif len(matches) > 1:
        raise ProviderInvariantError(f"Unexpected: {len(matches)} instances found for one id",
                                     record_name=record.name, instance_id=record.instance_id)

    snapshot = matches[0]
    merge_snapshot(record, snapshot)
    log.debug(f"Instance {record.name} <{record.instance_id}> loaded, state <{record.state}>")
    return snapshot


def build_create_request(record: InstanceRecord, *, log=logger) -> CreateRequest:
    user_data = render_user_data(record) if record.cloud_config else None

    block_devices = []
    for volume in record.volumes:
        if not volume.device_name:
            log.warning(f"Volume {volume.name} of {record.name} has no device name, not attached")
            continue
        block_devices.append(BlockDevice(
            device_name=volume.device_name,
            volume_size=volume.size,
            volume_type=volume.volume_type,
            iops=volume.iops,
            delete_on_termination=volume.delete_on_termination,
        ))

    return CreateRequest(
        image_id=record.image_id,
        instance_type=record.instance_type,
        key_name=record.key_name,
        security_groups=tuple(record.security_groups),
        subnet_id=record.subnet_id,
        ebs_optimized=record.ebs_optimized,
        disable_api_termination=not record.enable_api_termination,
        placement_group_name=record.placement_group_name or None,
        shutdown_behavior=record.shutdown_behavior or None,
        user_data=user_data,
        block_devices=tuple(block_devices),
    )


def create(provider: IComputeProvider, record: InstanceRecord, *, wait: Optional[WaitOptions] = None, log=logger) -> RemoteSnapshot:
    # template errors abort here, before any remote call
    request = build_create_request(record, log=log)

    snapshots = provider.create_instances(request)
    if len(snapshots) == 0:
        raise CreateFailedError("No instance was created", record_name=record.name)

    snapshot = snapshots[0]
    try:
        provider.tag_instance(snapshot.instance_id, [Tag(NAME_TAG_KEY, record.name)])
    except ProviderAPIError as e:
        raise TaggingError(f"Cannot tag new instance: {e.message}", code=e.code,
                           record_name=record.name, instance_id=snapshot.instance_id) from e

    merge_snapshot(record, snapshot)
    log.info(f"Instance {record.name} created with id <{record.instance_id}>")

    record.phase = LifecyclePhase.Polling
    wait_until_state(provider, record, RUNNING_STATE, wait=wait, log=log)
    return record.snapshot or snapshot


def wait_until_state(provider: IComputeProvider, record: InstanceRecord, state: str, *, wait: Optional[WaitOptions] = None, log=logger):
    """Poll the instance until its state is ``state``.

    Valid states: pending, running, shutting-down, terminated, stopping, stopped.
    No fetch happens when the record is already in ``state``. A failed load stops
    the wait at once and is never retried.
    """
    wait = wait or WaitOptions()

    if record.state != state:
        log.info(f"Instance {record.name} state is <{record.state}>, waiting for <{state}>")
        record.phase = LifecyclePhase.Polling

        def _reached():
            load(provider, record, log=log)
            return record.state == state

        try:
            wait_until(_reached, timeout=wait.timeout, retry_interval=wait.poll_interval,
                       check_first=False, clock=wait.clock, cancel=wait.cancel)
        except WaitUntilCancelledError as e:
            error = ProvisioningCancelledError(f"Waiting for <{state}> was cancelled",
                                               record_name=record.name, instance_id=record.instance_id)
            _mark_failed(record, error)
            log.warning(f"{error}")
            raise error from e
        except WaitUntilTimeoutError as e:
            error = WaitTimeoutError(f"Instance did not reach <{state}> within {wait.timeout}s, last state <{record.state}>",
                                     record_name=record.name, instance_id=record.instance_id)
            _mark_failed(record, error)
            log.error(f"{error}")
            raise error from e
        except ProvisionError as e:
            e.bind_record(record.name, record.instance_id)
            _mark_failed(record, e)
            log.error(f"Instance {record.name} polling failed: {e}")
            raise
        except Exception as e:
            _mark_failed(record, e)
            log.error(f"Instance {record.name} polling failed unexpectedly: {e!r}")
            raise

    record.phase = LifecyclePhase.Confirmed
    log.success(f"Instance {record.name} <{record.instance_id}> is {state}")


def terminate(provider: IComputeProvider, record: InstanceRecord, *, log=logger):
    if record.instance_id == "":
        raise MissingIdentifierError("To terminate an instance you need to pass its id", record_name=record.name)
    log.info(f"Terminating instance {record.instance_id}")
    provider.terminate_instances([record.instance_id])
    log.success(f"Instance <{record.instance_id}> was destroyed!")


def reboot(provider: IComputeProvider, record: InstanceRecord, *, log=logger):
    if record.instance_id == "":
        raise MissingIdentifierError("To reboot an instance you need to pass its id", record_name=record.name)
    log.info(f"Rebooting instance {record.instance_id}")
    provider.reboot_instances([record.instance_id])


def _mark_failed(record: InstanceRecord, error: Exception):
    if isinstance(error, ProvisioningCancelledError):
        record.phase = LifecyclePhase.Cancelled
    else:
        record.phase = LifecyclePhase.Failed
    record.failure = error


def _log_summary(record: InstanceRecord, title: str, log):
    log.debug(f"--------- {title} ---------")
    log.debug(f"    Id: {record.instance_id}")
    log.debug(f"    Name: {record.name}")
    log.debug(f"    Type: {record.instance_type}")
    log.debug(f"    Image Id: {record.image_id}")
    log.debug(f"    Available Zone: {record.availability_zone}")
    log.debug(f"    Key Name: {record.key_name}")
    log.debug(f"    Security Groups: {record.security_groups}")
    log.debug(f"    Placement Group: {record.placement_group_name}")
    log.debug(f"    Subnet Id: {record.subnet_id}")
    log.debug(f"    EBS Optimized: {record.ebs_optimized}")
    log.debug("----------------------------------")
