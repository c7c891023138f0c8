from dataclasses import dataclass, field
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError

from .instance import create_tags, describe_instance, reboot_instances, run_instances, terminate_instances

from ..provider_interface import IComputeProvider
from ..create_instances.errors import ProviderAPIError
from ..create_instances.types import CreateRequest, RemoteSnapshot, Tag

from mypy_boto3_ec2.client import EC2Client


@dataclass
class AwsComputeProvider(IComputeProvider):
    region_id: str
    _client: Optional[EC2Client] = field(default=None, repr=False)

    @classmethod
    def new(cls, region_id: str) -> 'AwsComputeProvider':
        return AwsComputeProvider(region_id=region_id)

    @property
    def client(self) -> EC2Client:
        if self._client is None:
            self._client = self.build()
        return self._client

    def build(self) -> EC2Client:
        if self.region_id == "":
            raise ProviderAPIError("No AWS region configured, set region in the machine file or the cluster defaults")
        # credentials come from boto3's default chain (env, profile, instance role)
        try:
            return boto3.client('ec2', region_name=self.region_id)
        except (BotoCoreError, ValueError) as e:
            raise ProviderAPIError(f"Cannot build EC2 client for region <{self.region_id}>: {e}") from e

    def fetch_instances(self, instance_id: str) -> List[RemoteSnapshot]:
        return describe_instance(self.client, instance_id)

    def create_instances(self, request: CreateRequest) -> List[RemoteSnapshot]:
        return run_instances(self.client, request)

    def tag_instance(self, instance_id: str, tags: List[Tag]):
        return create_tags(self.client, instance_id, tags)

    def terminate_instances(self, instance_ids: List[str]):
        return terminate_instances(self.client, instance_ids)

    def reboot_instances(self, instance_ids: List[str]):
        return reboot_instances(self.client, instance_ids)
