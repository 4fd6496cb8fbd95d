from typing import Any

import pytest
from fastapi.testclient import TestClient

from rango_api.config import EnvConfig
from rango_api.container import ENV_CONFIG, ServiceRegistry, build_container


def build_test_config(**overrides: Any) -> EnvConfig:
    defaults: dict[str, Any] = {
        "NODE_ENV": "test",
        "LOG_LEVEL": "WARNING",
        "LOG_JSON": False,
    }
    defaults.update(overrides)
    return EnvConfig.model_validate(defaults)


def build_test_container(**overrides: Any) -> ServiceRegistry:
    container = build_container()
    container.register_singleton(ENV_CONFIG, instance=build_test_config(**overrides), replace=True)
    return container


@pytest.fixture(scope="session")
def app_instance():
    from rango_api import create_app

    return create_app(build_test_container())


@pytest.fixture
def client(app_instance):
    with TestClient(app_instance) as tc:
        yield tc


@pytest.fixture
def make_client():
    clients: list[TestClient] = []

    def _factory(api) -> TestClient:
        tc = TestClient(api)
        tc.__enter__()
        clients.append(tc)
        return tc

    yield _factory
    for tc in clients:
        tc.__exit__(None, None, None)
