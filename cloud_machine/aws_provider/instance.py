# pyright: reportTypedDictNotRequiredAccess=false

from typing import Any, Dict, List

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..create_instances.errors import ProviderAPIError
from ..create_instances.types import CreateRequest, RemoteSnapshot, Tag

from mypy_boto3_ec2.client import EC2Client
from mypy_boto3_ec2.type_defs import InstanceTypeDef


def as_remote_snapshot(instance: InstanceTypeDef) -> RemoteSnapshot:
    launch_time = instance.get('LaunchTime')
    return RemoteSnapshot(
        instance_id=instance['InstanceId'],
        instance_type=instance.get('InstanceType', ''),
        image_id=instance.get('ImageId', ''),
        subnet_id=instance.get('SubnetId', ''),
        key_name=instance.get('KeyName', ''),
        availability_zone=instance.get('Placement', {}).get('AvailabilityZone', ''),
        ebs_optimized=instance.get('EbsOptimized', False),
        security_groups=tuple(group['GroupId'] for group in instance.get('SecurityGroups', [])),
        state=instance.get('State', {}).get('Name', ''),
        tags=tuple(Tag(tag['Key'], tag['Value']) for tag in instance.get('Tags', [])),
        private_ip_address=instance.get('PrivateIpAddress', ''),
        public_ip_address=instance.get('PublicIpAddress', ''),
        launch_time=launch_time.isoformat() if launch_time else None,
    )


def as_run_instances_params(request: CreateRequest) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        'ImageId': request.image_id,
        'InstanceType': request.instance_type,
        'MinCount': 1,
        'MaxCount': 1,
        'EbsOptimized': request.ebs_optimized,
        'DisableApiTermination': request.disable_api_termination,
    }
    if request.key_name:
        params['KeyName'] = request.key_name
    if request.security_groups:
        params['SecurityGroupIds'] = list(request.security_groups)
    if request.subnet_id:
        params['SubnetId'] = request.subnet_id
    if request.placement_group_name:
        params['Placement'] = {'GroupName': request.placement_group_name}
    if request.shutdown_behavior:
        params['InstanceInitiatedShutdownBehavior'] = request.shutdown_behavior
    if request.user_data is not None:
        # boto3 base64-encodes UserData for run_instances
        params['UserData'] = request.user_data.decode('utf-8')
    if request.block_devices:
        mappings = []
        for device in request.block_devices:
            ebs: Dict[str, Any] = {
                'VolumeSize': device.volume_size,
                'DeleteOnTermination': device.delete_on_termination,
            }
            if device.volume_type:
                ebs['VolumeType'] = device.volume_type
            if device.iops is not None:
                ebs['Iops'] = device.iops
            mappings.append({'DeviceName': device.device_name, 'Ebs': ebs})
        params['BlockDeviceMappings'] = mappings
    return params


def _as_provider_error(action: str, exc: Exception) -> ProviderAPIError:
    if isinstance(exc, ClientError):
        code = exc.response.get('Error', {}).get('Code')
        return ProviderAPIError(f"{action} failed: {exc}", code=code)
    return ProviderAPIError(f"{action} failed: {exc}")


def describe_instance(client: EC2Client, instance_id: str) -> List[RemoteSnapshot]:
    try:
        response = client.describe_instances(InstanceIds=[instance_id])
    except ClientError as e:
        if e.response['Error']['Code'] == 'InvalidInstanceID.NotFound':
            return []
        raise _as_provider_error("describe_instances", e) from e
    except BotoCoreError as e:
        raise _as_provider_error("describe_instances", e) from e

    return [as_remote_snapshot(instance)
            for reservation in response['Reservations']
            for instance in reservation['Instances']]


def run_instances(client: EC2Client, request: CreateRequest) -> List[RemoteSnapshot]:
    try:
        response = client.run_instances(**as_run_instances_params(request))
    except (ClientError, BotoCoreError) as e:
        logger.error(f"run_instances failed: image={request.image_id}, instance_type={request.instance_type}: {e}")
        raise _as_provider_error("run_instances", e) from e

    snapshots = [as_remote_snapshot(instance) for instance in response['Instances']]
    logger.debug(f"run_instances returned ids={[s.instance_id for s in snapshots]}")
    return snapshots


def create_tags(client: EC2Client, instance_id: str, tags: List[Tag]):
    try:
        client.create_tags(Resources=[instance_id], Tags=[{'Key': tag.key, 'Value': tag.value} for tag in tags])
    except (ClientError, BotoCoreError) as e:
        raise _as_provider_error("create_tags", e) from e


def terminate_instances(client: EC2Client, instance_ids: List[str]):
    try:
        client.terminate_instances(InstanceIds=instance_ids)
    except (ClientError, BotoCoreError) as e:
        raise _as_provider_error("terminate_instances", e) from e


def reboot_instances(client: EC2Client, instance_ids: List[str]):
    try:
        client.reboot_instances(InstanceIds=instance_ids)
    except (ClientError, BotoCoreError) as e:
        raise _as_provider_error("reboot_instances", e) from e
