"""
restatekit: declare durable-execution handler groups on plain classes and
register them with a runtime endpoint at startup.

- Declarations (`restatekit.decorators`): `@service`, `@virtual_object`,
  `@workflow`, `@handler`, or the explicit `declare_role` / `declare_handler`.
- Binding (`restatekit.binder`): instance + declarations -> `BoundDefinition`.
- Startup (`restatekit.app.RestateApp`): queue feature registrations, start
  the endpoint once, drain the queues at bootstrap and announce the
  deployment to the control plane.

This core package is framework-agnostic. `restatekit_django` wires the
bootstrap drain into Django's `AppConfig.ready()`.
"""

from importlib.metadata import PackageNotFoundError, version

from .app import RestateApp
from .binder import BoundDefinition, bind, create_service, create_virtual_object, create_workflow
from .bootstrap import DrainReport
from .decorators import declare_handler, declare_role, handler, service, virtual_object, workflow
from .registrar import DeploymentState
from .roles import Role

try:
    __version__ = version("restatekit")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BoundDefinition",
    "DeploymentState",
    "DrainReport",
    "RestateApp",
    "Role",
    "bind",
    "create_service",
    "create_virtual_object",
    "create_workflow",
    "declare_handler",
    "declare_role",
    "handler",
    "service",
    "virtual_object",
    "workflow",
]
