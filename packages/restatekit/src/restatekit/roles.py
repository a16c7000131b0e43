# restatekit/roles.py
"""Handler-group roles understood by the durable runtime."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """The three kinds of handler group a class can be declared as.

    - ``SERVICE``: stateless handler group.
    - ``OBJECT``: keyed, stateful handler group (a "virtual object").
    - ``WORKFLOW``: stateful handler group with a mandatory ``run`` entry point.
    """

    SERVICE = "service"
    OBJECT = "object"
    WORKFLOW = "workflow"

    @classmethod
    def coerce(cls, value: "Role | str") -> "Role":
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as err:
            raise ValueError(
                f"Unknown role {value!r}; expected one of {', '.join(r.value for r in cls)}"
            ) from err

    def __str__(self) -> str:
        return self.value


# Registration / drain order used by the bootstrap cycle.
ROLE_ORDER: tuple[Role, ...] = (Role.SERVICE, Role.OBJECT, Role.WORKFLOW)

WORKFLOW_ENTRY_POINT = "run"

__all__ = ["Role", "ROLE_ORDER", "WORKFLOW_ENTRY_POINT"]
