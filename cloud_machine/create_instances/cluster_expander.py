from typing import List

from .instance_record import InstanceRecord
from .machine_config import MachineTemplate


def expand(template: MachineTemplate, node_count: int) -> List[InstanceRecord]:
    """Materialize ``node_count`` records named ``<name>-1`` .. ``<name>-N``.

    Every record gets its own copy of the volume list, so records never share
    mutable state with each other or with the template.
    """
    return [_expand_node(template, i) for i in range(1, node_count + 1)]


def _expand_node(template: MachineTemplate, index: int) -> InstanceRecord:
    volumes = [volume.model_copy(update={"name": f"{volume.name}-{index}"}, deep=True)
               for volume in template.volumes]

    return InstanceRecord(
        name=f"{template.name}-{index}",
        instance_type=template.instance_type,
        image_id=template.image_id,
        region=template.region,
        key_name=template.key_name,
        security_groups=list(template.security_groups),
        subnet_id=template.subnet_id,
        availability_zone=template.availability_zone,
        cloud_config=template.cloud_config,
        ebs_optimized=template.ebs_optimized,
        enable_api_termination=template.enable_api_termination,
        placement_group_name=template.placement_group_name,
        shutdown_behavior=template.shutdown_behavior,
        volumes=volumes,
    )
