from string import Template

from .errors import ConfigFileError, TemplateRenderError
from .instance_record import InstanceRecord


def render_user_data(record: InstanceRecord) -> bytes:
    """Render the record's cloud-config template into instance user data.

    Placeholders use ``$field`` / ``${field}`` and reference the record's fields
    by name, e.g. ``hostname: ${name}``. A literal dollar sign is written ``$$``.
    """
    try:
        with open(record.cloud_config, "r", encoding="utf-8") as f:
            source = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Cannot read cloud config {record.cloud_config}: {e}",
                              record_name=record.name) from e

    try:
        rendered = Template(source).substitute(record.template_context())
    except KeyError as e:
        raise TemplateRenderError(f"Unknown field {e} in cloud config {record.cloud_config}",
                                  record_name=record.name) from e
    except ValueError as e:
        raise TemplateRenderError(f"Malformed cloud config {record.cloud_config}: {e}",
                                  record_name=record.name) from e

    return rendered.encode("utf-8")
