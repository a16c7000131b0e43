import inspect

import pytest

from restatekit.binder import bind, create_service, create_virtual_object, create_workflow
from restatekit.exceptions import MissingEntryPointError, MissingMetadataError
from restatekit.roles import Role


class Greeter:
    def __init__(self, greeting="Hello"):
        self.greeting = greeting

    async def greet(self, ctx, name):
        """Say hello."""
        return {"ctx": ctx, "message": f"{self.greeting} {name}"}

    def shout(self, ctx, name):
        return f"{self.greeting.upper()} {name.upper()}"


@pytest.fixture
def greeter_registry(registry):
    registry.set_role(Greeter, Role.SERVICE, "Greeter")
    registry.add_handler(Greeter, "greet", Greeter.greet)
    registry.add_handler(Greeter, "shout", Greeter.shout)
    return registry


@pytest.mark.asyncio
async def test_bind_service_binds_handlers_to_instance(greeter_registry):
    definition = bind(Greeter("Hey"), Role.SERVICE, greeter_registry)

    assert definition.role is Role.SERVICE
    assert definition.name == "Greeter"
    assert definition.handler_names == {"greet", "shout"}
    assert definition.source is Greeter

    ctx = object()
    result = await definition.handlers["greet"](ctx, "Ada")
    assert result == {"ctx": ctx, "message": "Hey Ada"}


@pytest.mark.asyncio
async def test_sync_handlers_are_awaitable(greeter_registry):
    definition = create_service(Greeter(), greeter_registry)

    handler = definition.handlers["shout"]
    assert inspect.iscoroutinefunction(handler)
    assert await handler(None, "ada") == "HELLO ADA"


def test_bound_handlers_keep_method_introspection(greeter_registry):
    definition = bind(Greeter(), Role.SERVICE, greeter_registry)
    handler = definition.handlers["greet"]

    assert handler.__name__ == "greet"
    assert handler.__doc__ == "Say hello."
    assert list(inspect.signature(handler).parameters) == ["ctx", "name"]


def test_name_defaults_to_class_name(registry):
    class Counter:
        async def add(self, ctx, n):
            return n

    registry.set_role(Counter, Role.OBJECT)
    registry.add_handler(Counter, "add", Counter.add)

    assert create_virtual_object(Counter(), registry).name == "Counter"


@pytest.mark.asyncio
async def test_binding_twice_yields_independent_definitions(greeter_registry):
    first_instance, second_instance = Greeter("A"), Greeter("B")
    first = bind(first_instance, Role.SERVICE, greeter_registry)
    again = bind(first_instance, Role.SERVICE, greeter_registry)
    other = bind(second_instance, Role.SERVICE, greeter_registry)

    assert first is not again
    assert (first.name, first.role, first.handler_names) == (again.name, again.role, again.handler_names)
    assert first.handlers["greet"] is not again.handlers["greet"]
    assert (await again.handlers["greet"](None, "x"))["message"] == "A x"
    assert (await other.handlers["greet"](None, "x"))["message"] == "B x"


def test_role_without_handlers_is_missing_metadata(registry):
    class Empty:
        pass

    registry.set_role(Empty, Role.SERVICE)

    with pytest.raises(MissingMetadataError, match="missing role/handler metadata"):
        bind(Empty(), Role.SERVICE, registry)


def test_handlers_without_role_is_missing_metadata(registry):
    registry.add_handler(Greeter, "greet", Greeter.greet)

    with pytest.raises(MissingMetadataError, match="missing role/handler metadata"):
        bind(Greeter(), Role.SERVICE, registry)


def test_role_mismatch_is_missing_metadata(greeter_registry):
    with pytest.raises(MissingMetadataError):
        bind(Greeter(), Role.OBJECT, greeter_registry)


def test_workflow_requires_run_entry_point(registry):
    class Signup:
        async def status(self, ctx):
            return "pending"

        async def run(self, ctx, email):
            return email

    registry.set_role(Signup, Role.WORKFLOW, "Signup")
    registry.add_handler(Signup, "status", Signup.status)

    with pytest.raises(MissingEntryPointError, match="must implement a 'run' method"):
        create_workflow(Signup(), registry)

    registry.add_handler(Signup, "run", Signup.run)
    definition = create_workflow(Signup(), registry)
    assert definition.handler_names == {"run", "status"}


@pytest.mark.asyncio
async def test_subclass_instance_inherits_declarations(greeter_registry):
    class LoudGreeter(Greeter):
        async def greet(self, ctx, name):
            return {"ctx": ctx, "message": f"{self.greeting}!!! {name}"}

    definition = bind(LoudGreeter(), Role.SERVICE, greeter_registry)

    assert definition.name == "Greeter"
    # the declared function is the base one; the override is not a handler
    assert (await definition.handlers["greet"](None, "Ada"))["message"] == "Hello Ada"


def test_handler_options_carry_kind(registry):
    class Cart:
        async def items(self, ctx):
            return []

        async def add(self, ctx, item):
            return item

    registry.set_role(Cart, Role.OBJECT)
    registry.add_handler(Cart, "items", Cart.items, kind="shared")
    registry.add_handler(Cart, "add", Cart.add)

    definition = create_virtual_object(Cart(), registry)
    assert dict(definition.handler_options) == {"items": {"kind": "shared"}}
