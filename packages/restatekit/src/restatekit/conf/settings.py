"""restatekit configuration layers.

Lookups fall through, highest precedence first:

1. values set on the app (``RestateApp.configure`` / ``config_from_object``)
2. ``RESTATEKIT_<KEY>`` environment variables for known keys
3. UPPERCASE names of the module named by ``RESTATEKIT_CONFIG_MODULE``
4. :data:`~restatekit.conf.defaults.DEFAULTS`

Environment values stay strings; :meth:`Settings.validated` lets pydantic
coerce them.
"""

import importlib
import os
from collections import ChainMap
from types import ModuleType
from typing import Any, Iterator, Mapping, MutableMapping

from .defaults import DEFAULTS
from .models import RestateKitSettings

ENV_PREFIX = "RESTATEKIT_"
CONFIG_MODULE_ENVVAR = f"{ENV_PREFIX}CONFIG_MODULE"


class Settings(MutableMapping[str, Any]):
    """Layered settings; writes and deletes only touch the override layer."""

    def __init__(self, overrides: Mapping[str, Any] | None = None) -> None:
        self._overrides: dict[str, Any] = dict(overrides or {})
        self._environ: dict[str, Any] = {}
        self._module: dict[str, Any] = {}
        self._storage = ChainMap(self._overrides, self._environ, self._module, dict(DEFAULTS))

    def __getitem__(self, key: str) -> Any:
        return self._storage[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._overrides[key] = value

    def __delitem__(self, key: str) -> None:
        del self._overrides[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    def update_from_mapping(self, mapping: Mapping[str, Any], *, namespace: str | None = None) -> None:
        self._overrides.update(_filter_by_namespace(mapping, namespace))

    def update_from_object(self, obj: Any, *, namespace: str | None = None) -> None:
        """Override from a module, a ``"module"`` / ``"module:attr"`` path, or any object with attributes."""
        self._overrides.update(_read_object(obj, namespace))

    def load_environment(self, environ: Mapping[str, str] | None = None) -> None:
        """Refresh the config-module and ``RESTATEKIT_<KEY>`` layers from ``environ``."""
        environ = os.environ if environ is None else environ

        self._module.clear()
        module_path = environ.get(CONFIG_MODULE_ENVVAR)
        if module_path:
            self._module.update(_read_object(module_path, None))

        self._environ.clear()
        for key in DEFAULTS:
            if ENV_PREFIX + key in environ:
                self._environ[key] = environ[ENV_PREFIX + key]

    def validated(self) -> RestateKitSettings:
        return RestateKitSettings.model_validate(dict(self._storage))


def _read_object(obj: Any, namespace: str | None) -> dict[str, Any]:
    if isinstance(obj, str):
        module_path, _, attr = obj.partition(":")
        obj = importlib.import_module(module_path)
        if attr:
            obj = getattr(obj, attr)
    if isinstance(obj, ModuleType):
        values = vars(obj)
    else:
        values = {name: getattr(obj, name) for name in dir(obj) if not name.startswith("_")}
    return _filter_by_namespace(values, namespace)


def _filter_by_namespace(mapping: Mapping[str, Any], namespace: str | None) -> dict[str, Any]:
    if namespace is None:
        return {k: v for k, v in mapping.items() if k.isupper()}

    prefix = f"{namespace}_"
    return {key[len(prefix):]: value for key, value in mapping.items() if key.startswith(prefix)}
