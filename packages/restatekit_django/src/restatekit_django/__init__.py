"""Django integration for restatekit: bootstrap handler groups from ``AppConfig.ready()``."""
