# restatekit/exceptions.py
"""Exception hierarchy for restatekit."""


class RestateKitError(Exception):
    """Base class for every error raised by restatekit."""


# ----------------------------------------------------------------------------
# Metadata / binding errors
# ----------------------------------------------------------------------------
class MetadataError(RestateKitError): ...


class MissingMetadataError(MetadataError):
    """A class is missing its role descriptor or handler declarations."""


class MissingEntryPointError(MetadataError):
    """A workflow class has no ``run`` handler."""


class RoleConflictError(MetadataError):
    """A class was declared with two different roles."""


# ----------------------------------------------------------------------------
# Endpoint errors
# ----------------------------------------------------------------------------
class EndpointError(RestateKitError): ...


class EndpointAlreadyStartedError(EndpointError):
    """The endpoint is already listening on a different port."""


class DuplicateDefinitionError(EndpointError):
    """A definition with the same name was already attached to the endpoint."""


# ----------------------------------------------------------------------------
# Bootstrap errors
# ----------------------------------------------------------------------------
class InstanceResolutionError(RestateKitError):
    """The resolver produced no instance for a pending class."""


class RegistrationHandshakeError(RestateKitError):
    """The control plane rejected (or never received) the deployment announcement."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "RestateKitError",
    "MetadataError",
    "MissingMetadataError",
    "MissingEntryPointError",
    "RoleConflictError",
    "EndpointError",
    "EndpointAlreadyStartedError",
    "DuplicateDefinitionError",
    "InstanceResolutionError",
    "RegistrationHandshakeError",
]
