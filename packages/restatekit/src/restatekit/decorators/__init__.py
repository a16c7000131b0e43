# restatekit/decorators/__init__.py
"""Declaration surface: role decorators, ``@handler`` and explicit ``declare_*`` calls."""

from .base import (
    RoleDecorator,
    declare_handler,
    declare_role,
    handler,
    service,
    virtual_object,
    workflow,
)

__all__ = [
    "RoleDecorator",
    "declare_handler",
    "declare_role",
    "handler",
    "service",
    "virtual_object",
    "workflow",
]
