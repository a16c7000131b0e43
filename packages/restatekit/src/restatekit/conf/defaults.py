"""Default configuration values for restatekit."""

DEFAULTS: dict[str, object] = {
    # Endpoint
    "LISTEN_PORT": 9080,
    "ENDPOINT": "restatekit.contrib.restate_sdk:SdkEndpoint",
    # Address announced to the control plane
    "ENDPOINT_PROTOCOL": "http",
    "ENDPOINT_HOST": "localhost",
    # Control plane (admin API)
    "ADMIN_URL": "http://localhost:9070",
    "ADMIN_TIMEOUT": 10.0,
    "REGISTER_DEPLOYMENT": True,
    "DEPLOYMENT_FORCE": False,
}
