"""Declaration registry and pre-bootstrap registration queues."""

from .metadata import MetadataRegistry, default_registry
from .pending import QueueState, RegistrationQueue, RegistrationQueues
from .records import ClassMetadataEntry, HandlerRecord, PendingRegistration, RoleDescriptor

__all__ = [
    "MetadataRegistry",
    "default_registry",
    "QueueState",
    "RegistrationQueue",
    "RegistrationQueues",
    "ClassMetadataEntry",
    "HandlerRecord",
    "PendingRegistration",
    "RoleDescriptor",
]
