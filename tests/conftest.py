import json

import httpx
import pytest

from restatekit.registry import MetadataRegistry


class RecordingEndpoint:
    """Endpoint double that remembers what it was asked to do."""

    def __init__(self, *, fail_on: set[str] | None = None) -> None:
        self.bound = []
        self.listen_calls = []
        self.fail_on = fail_on or set()

    def bind(self, definition):
        if definition.name in self.fail_on:
            raise RuntimeError(f"runtime rejected {definition.name}")
        self.bound.append(definition)

    async def listen(self, port):
        self.listen_calls.append(port)


class ControlPlane:
    """Scripted control plane answering ``POST /deployments``."""

    def __init__(self, *statuses: int) -> None:
        self.statuses = list(statuses) or [201]
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        return httpx.Response(status, json={"id": "dp_1"})

    def client_factory(self):
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def registry():
    return MetadataRegistry()


@pytest.fixture
def endpoint():
    return RecordingEndpoint()


@pytest.fixture
def control_plane():
    return ControlPlane()


@pytest.fixture
def make_endpoint():
    return RecordingEndpoint


@pytest.fixture
def make_control_plane():
    return ControlPlane
