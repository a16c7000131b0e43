# restatekit_django/apps.py
"""
restatekit_django.apps
======================

Django's ``AppConfig.ready()`` is the bootstrap signal: by the time it runs
every installed app is imported, so declared classes can be resolved, bound
and attached to the endpoint.

Settings
--------
- ``RESTATE_AUTOSTART`` (env) / ``RESTATE["AUTOSTART"]`` (bool, default True):
  enable/disable the bootstrap in ``ready()``.
- ``RESTATE_SKIP_READY_COMMANDS`` (env) / ``RESTATE["SKIP_READY_COMMANDS"]``:
  management commands that never bootstrap (default: migrate, makemigrations,
  collectstatic, shell).
"""

import logging
import os
import sys
import threading
from typing import Any

from django.apps import AppConfig
from django.conf import settings as dj_settings

from .integration import DEFAULT_NAMESPACE, bootstrap_from_django_settings, collect_settings

logger = logging.getLogger(__name__)

_startup_lock = threading.RLock()
_started = False

DEFAULT_SKIP_READY_COMMANDS = {"migrate", "makemigrations", "collectstatic", "shell"}


def _coerce_bool(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    if value is None:
        return default
    return bool(value)


def _active_management_command(argv: list[str]) -> str | None:
    if len(argv) < 2:
        return None
    runner = argv[0]
    if not runner.endswith("manage.py") and "django-admin" not in runner:
        return None
    command = argv[1]
    if command.startswith("-"):
        return None
    return command


def _commands_to_skip(mapping: dict[str, Any]) -> set[str]:
    configured = mapping.get("SKIP_READY_COMMANDS")
    if configured is None:
        configured = os.environ.get("RESTATE_SKIP_READY_COMMANDS")
    if configured is None:
        return set(DEFAULT_SKIP_READY_COMMANDS)

    if isinstance(configured, str):
        configured = [p.strip() for p in configured.split(",") if p.strip()]
    return {str(item) for item in configured if str(item)}


def _autostart_enabled(mapping: dict[str, Any]) -> bool:
    if os.environ.get("DJANGO_SKIP_READY") == "1":
        return False

    env_override = os.environ.get("RESTATE_AUTOSTART")
    if env_override is not None:
        return _coerce_bool(env_override)

    return _coerce_bool(mapping.get("AUTOSTART"), default=True)


def reset_startup_state() -> None:
    """Allow ``ready()`` to bootstrap again (test harnesses)."""
    global _started
    with _startup_lock:
        _started = False


class RestateKitConfig(AppConfig):
    """Django AppConfig that runs the restatekit bootstrap drain."""

    name = "restatekit_django"
    label = "restatekit_django"
    verbose_name = "restatekit"

    app = None
    report = None

    def ready(self) -> None:
        global _started

        mapping = collect_settings(dj_settings, DEFAULT_NAMESPACE)
        if not _autostart_enabled(mapping):
            return

        command = _active_management_command(sys.argv)
        if command and command in _commands_to_skip(mapping):
            logger.debug("Skipping restatekit bootstrap for management command %s", command)
            return

        with _startup_lock:
            if _started:
                return
            _started = True

        try:
            self.app, self.report = bootstrap_from_django_settings(dj_settings)
        except Exception:
            # Bootstrap failures are logged, never raised into Django startup.
            logger.exception("restatekit bootstrap failed; no handler groups are reachable")
            return

        logger.info(
            "restatekit bootstrap complete: %d attached, %d skipped, %d failed",
            len(self.report.attached),
            len(self.report.skipped),
            len(self.report.failed),
        )
