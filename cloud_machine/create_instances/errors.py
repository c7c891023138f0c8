from typing import Optional


class ProvisionError(Exception):
    """Base class for every failure raised while provisioning one record.

    ``record_name`` and ``instance_id`` are filled in by the lifecycle once the
    failing record is known, so an operator can find the resource afterwards.
    """

    def __init__(self, message: str, *, record_name: str = "", instance_id: str = ""):
        super().__init__(message)
        self.message = message
        self.record_name = record_name
        self.instance_id = instance_id

    def bind_record(self, record_name: str, instance_id: str = ""):
        if not self.record_name:
            self.record_name = record_name
        if not self.instance_id:
            self.instance_id = instance_id
        return self

    def __str__(self):
        where = []
        if self.record_name:
            where.append(f"name=<{self.record_name}>")
        if self.instance_id:
            where.append(f"id=<{self.instance_id}>")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class ClusterConfigError(ProvisionError):
    pass


class TemplateError(ProvisionError):
    pass


class ConfigFileError(TemplateError):
    pass


class TemplateRenderError(TemplateError):
    pass


class MissingIdentifierError(ProvisionError):
    pass


class NotFoundError(ProvisionError):
    def __init__(self, instance_id: str, **kwargs):
        super().__init__(f"No instance was found with instance id <{instance_id}>", instance_id=instance_id, **kwargs)


class ProviderInvariantError(ProvisionError):
    pass


class CreateFailedError(ProviderInvariantError):
    pass


class ProviderAPIError(ProvisionError):
    def __init__(self, message: str, *, code: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code


class TaggingError(ProviderAPIError):
    pass


class WaitTimeoutError(ProvisionError, TimeoutError):
    pass


class ProvisioningCancelledError(ProvisionError):
    pass
