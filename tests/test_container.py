import pytest

from conftest import build_test_config
from rango_api.bootstrap.docs import SwaggerConfig
from rango_api.bootstrap.server import ServerFactory
from rango_api.config import EnvConfig
from rango_api.container import (
    ENV_CONFIG,
    ROUTER,
    SERVER_FACTORY,
    SWAGGER_CONFIG,
    ServiceRegistry,
    ServiceToken,
    build_container,
)
from rango_api.errors import CircularDependencyError, DuplicateTokenError, UnregisteredTokenError
from rango_api.routes import Router


def test_resolve_returns_the_same_instance_every_time():
    registry = ServiceRegistry()
    token = ServiceToken("Thing")
    registry.register_singleton(token, lambda _r: object())

    first = registry.resolve(token)
    assert registry.resolve(token) is first


def test_factory_runs_once_and_only_on_first_resolve():
    registry = ServiceRegistry()
    calls = []

    def factory(_registry):
        calls.append(1)
        return {"built": True}

    registry.register_singleton("Thing", factory)
    assert calls == []
    assert registry.peek("Thing") is None

    registry.resolve("Thing")
    registry.resolve("Thing")

    assert calls == [1]
    assert registry.peek("Thing") == {"built": True}


def test_registered_instance_is_returned_as_is():
    registry = ServiceRegistry()
    config = build_test_config()
    registry.register_singleton(ENV_CONFIG, instance=config)

    assert registry.resolve(ENV_CONFIG) is config
    assert registry.peek(ENV_CONFIG) is config


def test_resolving_unregistered_token_fails_loudly():
    registry = ServiceRegistry()

    with pytest.raises(UnregisteredTokenError) as exc_info:
        registry.resolve("Missing")

    assert exc_info.value.token == "Missing"
    assert isinstance(exc_info.value, LookupError)


def test_tokens_with_the_same_name_are_distinct():
    registry = ServiceRegistry()
    first = ServiceToken("Clock")
    second = ServiceToken("Clock")
    registry.register_singleton(first, instance="first")

    assert registry.is_registered(first)
    assert not registry.is_registered(second)
    assert not registry.is_registered("Clock")
    with pytest.raises(UnregisteredTokenError):
        registry.resolve(second)


def test_dependencies_resolve_regardless_of_registration_order():
    registry = ServiceRegistry()
    registry.register_singleton("Service", lambda r: ("service", r.resolve("Dependency")))
    registry.register_singleton("Dependency", lambda _r: "dependency")

    assert registry.resolve("Service") == ("service", "dependency")


def test_duplicate_registration_is_rejected_by_default():
    registry = ServiceRegistry()
    registry.register_singleton("Thing", instance="original")

    with pytest.raises(DuplicateTokenError):
        registry.register_singleton("Thing", instance="other")

    assert registry.resolve("Thing") == "original"


def test_replace_overwrites_entry_and_drops_cached_instance():
    registry = ServiceRegistry()
    registry.register_singleton("Thing", lambda _r: object())
    stale = registry.resolve("Thing")

    registry.register_singleton("Thing", lambda _r: "fresh", replace=True)

    assert registry.peek("Thing") is None
    assert registry.resolve("Thing") == "fresh"
    assert registry.resolve("Thing") is not stale


def test_register_singleton_requires_exactly_one_provider():
    registry = ServiceRegistry()
    with pytest.raises(ValueError):
        registry.register_singleton("Thing")
    with pytest.raises(ValueError):
        registry.register_singleton("Thing", lambda _r: 1, instance=1)


def test_cycles_fail_with_the_resolution_chain():
    registry = ServiceRegistry()
    registry.register_singleton("A", lambda r: r.resolve("B"))
    registry.register_singleton("B", lambda r: r.resolve("C"))
    registry.register_singleton("C", lambda r: r.resolve("A"))

    with pytest.raises(CircularDependencyError) as exc_info:
        registry.resolve("A")

    assert exc_info.value.chain == ["A", "B", "C", "A"]
    assert registry.peek("A") is None


def test_self_dependency_is_a_cycle():
    registry = ServiceRegistry()
    registry.register_singleton("Loop", lambda r: r.resolve("Loop"))

    with pytest.raises(CircularDependencyError):
        registry.resolve("Loop")


def test_failed_factory_is_retried_on_next_resolve():
    registry = ServiceRegistry()
    attempts = []

    def flaky(_registry):
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("boom")
        return "ok"

    registry.register_singleton("Flaky", flaky)
    with pytest.raises(RuntimeError):
        registry.resolve("Flaky")

    assert registry.resolve("Flaky") == "ok"


def test_build_container_wires_bootstrap_services():
    container = build_container({"NODE_ENV": "test", "API_PORT": "4100"})

    config = container.resolve(ENV_CONFIG)
    factory = container.resolve(SERVER_FACTORY)
    swagger = container.resolve(SWAGGER_CONFIG)

    assert isinstance(config, EnvConfig)
    assert config.API_PORT == 4100
    assert isinstance(factory, ServerFactory)
    assert factory.config is config
    assert factory.registry is container
    assert isinstance(swagger, SwaggerConfig)
    assert swagger.config is config
    assert isinstance(container.resolve(ROUTER), Router)


def test_containers_are_independent():
    first = build_container({"API_PORT": "4001"})
    second = build_container({"API_PORT": "4002"})

    assert first.resolve(ENV_CONFIG) is not second.resolve(ENV_CONFIG)
    assert first.resolve(ENV_CONFIG).API_PORT == 4001
    assert second.resolve(ENV_CONFIG).API_PORT == 4002
