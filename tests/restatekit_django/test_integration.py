import sys
import types
from pathlib import Path

import pytest

from restatekit import RestateApp
from restatekit.resolvers import construct
from restatekit.roles import Role
from restatekit_django import integration


def make_package(tmp_path: Path, name: str, files: dict[str, str]) -> None:
    base = tmp_path / name
    base.mkdir()
    (base / "__init__.py").write_text("")
    for rel_path, content in files.items():
        target = base / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)


class Greeter:
    async def greet(self, ctx, name):
        return f"Hello {name}"


@pytest.fixture
def greeter_app(registry, endpoint, control_plane):
    registry.set_role(Greeter, Role.SERVICE, "Greeter")
    registry.add_handler(Greeter, "greet", Greeter.greet)
    return RestateApp(registry=registry, endpoint=endpoint, http_client_factory=control_plane.client_factory)


def test_collect_settings_prefers_explicit_mapping():
    dj = types.SimpleNamespace(RESTATE={"LISTEN_PORT": 9100}, RESTATE_LISTEN_PORT=1)
    assert integration.collect_settings(dj) == {"LISTEN_PORT": 9100}


def test_collect_settings_reads_namespaced_attributes():
    dj = types.SimpleNamespace(RESTATE_LISTEN_PORT=9100, RESTATE_SERVICES=["a.B"], OTHER=1)
    assert integration.collect_settings(dj) == {"LISTEN_PORT": 9100, "SERVICES": ["a.B"]}


def test_collect_settings_rejects_non_mapping():
    with pytest.raises(TypeError):
        integration.collect_settings(types.SimpleNamespace(RESTATE=["nope"]))


def test_import_from_path_forms():
    assert integration.import_from_path("restatekit.resolvers.construct") is construct
    assert integration.import_from_path("restatekit.resolvers:construct") is construct
    assert integration.import_from_path("restatekit:RestateApp.bootstrap") is RestateApp.bootstrap
    assert integration.import_from_path(Greeter) is Greeter

    with pytest.raises(ImportError):
        integration.import_from_path("construct")


def test_autodiscover_imports_existing_modules(tmp_path, monkeypatch):
    make_package(tmp_path, "rk_billing", {"restate.py": "LOADED = True\n"})
    make_package(tmp_path, "rk_blog", {})
    monkeypatch.syspath_prepend(str(tmp_path))

    imported = integration.autodiscover(["rk_billing", "rk_blog"])

    assert imported == ["rk_billing.restate"]
    assert sys.modules["rk_billing.restate"].LOADED is True
    assert integration.autodiscover(["rk_billing"], None) == []


def test_autodiscover_propagates_broken_modules(tmp_path, monkeypatch):
    make_package(tmp_path, "rk_broken", {"restate.py": "raise RuntimeError('boom')\n"})
    monkeypatch.syspath_prepend(str(tmp_path))

    with pytest.raises(RuntimeError, match="boom"):
        integration.autodiscover(["rk_broken"])


def test_build_app_uses_app_factory_and_core_keys(greeter_app):
    app = integration.build_app(
        {"APP": lambda: greeter_app, "LISTEN_PORT": 9200, "SERVICES": [Greeter], "AUTOSTART": False}
    )

    assert app is greeter_app
    assert app.settings.LISTEN_PORT == 9200
    assert "SERVICES" not in app.conf
    assert "AUTOSTART" not in app.conf


def test_build_app_rejects_other_objects():
    with pytest.raises(TypeError):
        integration.build_app({"APP": object()})


def test_register_features_imports_paths(greeter_app):
    integration.register_features(greeter_app, {"SERVICES": [f"{__name__}.Greeter"]})
    assert [(p.component, p.role) for p in greeter_app.queues.pending()] == [(Greeter, Role.SERVICE)]


def test_get_resolver_defaults_to_construct():
    assert integration.get_resolver({}) is construct
    assert integration.get_resolver({"RESOLVER": "restatekit.resolvers:construct"}) is construct


def test_bootstrap_from_django_settings(greeter_app, endpoint, control_plane):
    instance = Greeter()
    dj = types.SimpleNamespace(
        INSTALLED_APPS=[],
        RESTATE={
            "APP": lambda: greeter_app,
            "LISTEN_PORT": 9081,
            "SERVICES": [Greeter],
            "RESOLVER": lambda cls: instance,
        },
    )

    app, report = integration.bootstrap_from_django_settings(dj)

    assert app is greeter_app
    assert [d.name for d in report.attached] == ["Greeter"]
    assert endpoint.listen_calls == [9081]
    assert control_plane.bodies == [{"uri": "http://localhost:9081"}]
