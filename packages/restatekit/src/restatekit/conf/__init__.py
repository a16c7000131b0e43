from .defaults import DEFAULTS
from .models import RestateKitSettings
from .settings import CONFIG_MODULE_ENVVAR, ENV_PREFIX, Settings

__all__ = ["CONFIG_MODULE_ENVVAR", "DEFAULTS", "ENV_PREFIX", "RestateKitSettings", "Settings"]
