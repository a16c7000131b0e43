import httpx
import pytest

from restatekit.exceptions import RegistrationHandshakeError
from restatekit.registrar import DeploymentRegistrar, DeploymentState, endpoint_uri


def _registrar(control_plane, **kwargs):
    return DeploymentRegistrar(
        "http://restate:9070/",
        client_factory=control_plane.client_factory,
        **kwargs,
    )


def test_endpoint_uri():
    assert endpoint_uri("http", "localhost", 9080) == "http://localhost:9080"
    assert endpoint_uri("https://", "svc.internal", "443") == "https://svc.internal:443"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 201, 409])
async def test_success_and_conflict_register(make_control_plane, status):
    control_plane = make_control_plane(status)
    registrar = _registrar(control_plane)

    assert await registrar.register(9080) is True
    assert registrar.state is DeploymentState.REGISTERED


@pytest.mark.asyncio
async def test_request_shape(control_plane):
    registrar = _registrar(control_plane, host="greeter.internal")
    await registrar.register(9080)

    (request,) = control_plane.requests
    assert request.method == "POST"
    assert str(request.url) == "http://restate:9070/deployments"
    assert request.headers["content-type"] == "application/json"
    assert control_plane.bodies == [{"uri": "http://greeter.internal:9080"}]


@pytest.mark.asyncio
async def test_force_flag_is_sent(control_plane):
    await _registrar(control_plane, force=True).register(9080)
    assert control_plane.bodies == [{"uri": "http://localhost:9080", "force": True}]


@pytest.mark.asyncio
async def test_server_error_stays_unregistered(make_control_plane):
    control_plane = make_control_plane(500)
    registrar = _registrar(control_plane)

    assert await registrar.register(9080) is False
    assert registrar.state is DeploymentState.UNREGISTERED

    with pytest.raises(RegistrationHandshakeError) as info:
        await registrar.handshake(9080)
    assert info.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_error_stays_unregistered():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    registrar = DeploymentRegistrar(
        "http://restate:9070",
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
    )

    assert await registrar.register(9080) is False
    assert registrar.state is DeploymentState.UNREGISTERED
    assert registrar.attempts == 1


@pytest.mark.asyncio
async def test_no_request_once_registered(make_control_plane):
    control_plane = make_control_plane(500, 201)
    registrar = _registrar(control_plane)

    assert await registrar.register(9080) is False
    assert await registrar.register(9080) is True
    assert await registrar.register(9080) is True

    assert len(control_plane.requests) == 2
    assert registrar.attempts == 2


@pytest.mark.asyncio
async def test_timeout_stays_unregistered():
    def slow(request):
        raise httpx.ReadTimeout("slow", request=request)

    registrar = DeploymentRegistrar(
        "http://restate:9070",
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(slow)),
    )

    assert await registrar.register(9080) is False
    assert registrar.state is DeploymentState.UNREGISTERED
    assert registrar.attempts == 1


@pytest.mark.asyncio
async def test_unparseable_admin_url_is_a_handshake_error(control_plane):
    registrar = DeploymentRegistrar("http://[::1:9070", client_factory=control_plane.client_factory)

    with pytest.raises(RegistrationHandshakeError) as info:
        await registrar.handshake(9080)
    assert info.value.status_code is None
    assert await registrar.register(9080) is False
    assert control_plane.requests == []
