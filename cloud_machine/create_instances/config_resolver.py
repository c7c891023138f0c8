from .machine_config import ClusterDefaults, MachineTemplate


RESOLVABLE_FIELDS = ("image_id", "region", "key_name", "security_groups", "subnet_id", "availability_zone")


def resolve(template: MachineTemplate, defaults: ClusterDefaults) -> MachineTemplate:
    """Fill the unset fields of ``template`` from the cluster defaults.

    Empty strings and empty collections count as unset. Explicit values are never
    overridden, and a missing default leaves the field empty for the provider to reject.
    """
    update = {}
    for field_name in RESOLVABLE_FIELDS:
        if not getattr(template, field_name):
            update[field_name] = getattr(defaults, field_name)

    if not update:
        return template
    return template.model_copy(update=update)
