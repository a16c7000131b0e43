# restatekit/conf/models.py

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RestateKitSettings(BaseModel):
    """Typed view over the layered :class:`~restatekit.conf.settings.Settings`."""

    model_config = ConfigDict(extra="allow")

    LISTEN_PORT: int = Field(default=9080, ge=1, le=65535)
    ENDPOINT: str = "restatekit.contrib.restate_sdk:SdkEndpoint"

    ENDPOINT_PROTOCOL: str = "http"
    ENDPOINT_HOST: str = "localhost"

    ADMIN_URL: str = "http://localhost:9070"
    ADMIN_TIMEOUT: float = Field(default=10.0, gt=0)
    REGISTER_DEPLOYMENT: bool = True
    DEPLOYMENT_FORCE: bool = False

    @field_validator("ENDPOINT_PROTOCOL")
    @classmethod
    def _strip_protocol(cls, value: str) -> str:
        value = value.strip().rstrip(":/").lower()
        if value not in {"http", "https"}:
            raise ValueError(f"ENDPOINT_PROTOCOL must be 'http' or 'https', got {value!r}")
        return value

    @field_validator("ADMIN_URL")
    @classmethod
    def _strip_admin_url(cls, value: str) -> str:
        return value.strip().rstrip("/")
