# restatekit_django/integration.py
"""Build and bootstrap a :class:`~restatekit.RestateApp` from Django settings.

Settings
--------
Either a single mapping::

    RESTATE = {
        "LISTEN_PORT": 9080,
        "ADMIN_URL": "http://restate:9070",
        "SERVICES": ["billing.restate.Greeter"],
        "WORKFLOWS": ["billing.restate.Signup"],
        "RESOLVER": "billing.container:resolve",
    }

or namespaced attributes (``RESTATE_LISTEN_PORT = 9080``, ...).

Besides the core keys understood by :class:`restatekit.conf.Settings`:

- ``SERVICES`` / ``OBJECTS`` / ``WORKFLOWS``: dotted paths (or classes) to register.
- ``RESOLVER``: dotted path to a resolver callable (default: construct with no args).
- ``APP``: dotted path to a ``RestateApp`` instance or a factory returning one.
- ``DISCOVERY_MODULE``: submodule imported from every installed app so that
  its declarations run (default ``"restate"``; ``None`` disables discovery).
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
from collections.abc import Mapping
from typing import Any, Iterable

from asgiref.sync import async_to_sync

from restatekit import DrainReport, RestateApp
from restatekit.resolvers import construct

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "RESTATE"
DEFAULT_DISCOVERY_MODULE = "restate"

FEATURE_KEYS: tuple[str, ...] = ("SERVICES", "OBJECTS", "WORKFLOWS")
INTEGRATION_KEYS: frozenset[str] = frozenset(
    {*FEATURE_KEYS, "RESOLVER", "APP", "AUTOSTART", "DISCOVERY_MODULE", "SKIP_READY_COMMANDS"}
)


def _coerce_mapping(value: Any) -> Mapping[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return value
    raise TypeError("Django settings for restatekit must be a mapping or None")


def import_from_path(path: Any) -> Any:
    """Import and return an object from ``module:attr`` or ``module.attr`` paths.

    Non-string values are returned unchanged so settings may hold objects directly.
    """
    if not isinstance(path, str):
        return path

    if ":" in path:
        mod_path, attr = path.split(":", 1)
        obj: Any = importlib.import_module(mod_path)
        for part in attr.split("."):
            obj = getattr(obj, part)
        return obj

    mod_path, _, attr = path.rpartition(".")
    if not mod_path:
        raise ImportError(f"{path!r} is not a dotted import path")
    return getattr(importlib.import_module(mod_path), attr)


def collect_settings(dj_settings: Any, namespace: str = DEFAULT_NAMESPACE) -> dict[str, Any]:
    explicit = getattr(dj_settings, namespace, None)
    if explicit is not None:
        return dict(_coerce_mapping(explicit))

    # Namespaced attributes (e.g., RESTATE_LISTEN_PORT)
    prefix = f"{namespace}_"
    return {name[len(prefix):]: getattr(dj_settings, name) for name in dir(dj_settings) if name.startswith(prefix)}


def _module_exists(module_path: str) -> bool:
    try:
        return importlib.util.find_spec(module_path) is not None
    except ModuleNotFoundError:
        return False


def autodiscover(installed_apps: Iterable[str], module: str | None = DEFAULT_DISCOVERY_MODULE) -> list[str]:
    """Import ``<app>.<module>`` for every installed app that has one.

    A module that exists but fails to import is a real bug and propagates.
    """
    imported: list[str] = []
    if not module:
        return imported
    for app_label in installed_apps:
        module_path = f"{app_label}.{module}"
        if _module_exists(module_path):
            importlib.import_module(module_path)
            imported.append(module_path)
    return imported


def build_app(mapping: Mapping[str, Any]) -> RestateApp:
    app_path = mapping.get("APP")
    if app_path:
        target = import_from_path(app_path)
        app = target() if callable(target) else target
        if not isinstance(app, RestateApp):
            raise TypeError(f"RESTATE['APP'] must resolve to a RestateApp, got {type(app).__name__}")
    else:
        app = RestateApp()

    core = {key: value for key, value in mapping.items() if key not in INTEGRATION_KEYS}
    return app.configure(core)


def register_features(app: RestateApp, mapping: Mapping[str, Any]) -> RestateApp:
    services, objects, workflows = (
        [import_from_path(path) for path in mapping.get(key) or ()] for key in FEATURE_KEYS
    )
    return app.register_features(services=services, objects=objects, workflows=workflows)


def get_resolver(mapping: Mapping[str, Any]):
    path = mapping.get("RESOLVER")
    return import_from_path(path) if path else construct


def bootstrap_from_django_settings(
    dj_settings: Any | None = None,
    *,
    namespace: str = DEFAULT_NAMESPACE,
) -> tuple[RestateApp, DrainReport]:
    """Discover declarations, build the app, register features and run the bootstrap drain."""
    if dj_settings is None:
        from django.conf import settings as dj_settings  # type: ignore[no-redef]

    mapping = collect_settings(dj_settings, namespace)
    discovered = autodiscover(
        getattr(dj_settings, "INSTALLED_APPS", ()),
        mapping.get("DISCOVERY_MODULE", DEFAULT_DISCOVERY_MODULE),
    )
    if discovered:
        logger.debug("restatekit discovered declarations in %s", ", ".join(discovered))

    app = register_features(build_app(mapping), mapping)
    report = async_to_sync(app.bootstrap)(get_resolver(mapping))
    return app, report


__all__ = [
    "autodiscover",
    "bootstrap_from_django_settings",
    "build_app",
    "collect_settings",
    "get_resolver",
    "import_from_path",
    "register_features",
]
