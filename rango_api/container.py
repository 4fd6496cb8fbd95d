from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union, cast, overload

from rango_api.errors import CircularDependencyError, DuplicateTokenError, UnregisteredTokenError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from rango_api.bootstrap.docs import SwaggerConfig
    from rango_api.bootstrap.server import ServerFactory
    from rango_api.config import EnvConfig
    from rango_api.routes import Router

T = TypeVar("T")

logger = logging.getLogger("rango_api.container")


class ServiceToken(Generic[T]):
    """Opaque registry key. Two tokens are equal only if they are the same object."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"ServiceToken({self.name!r})"


Token = Union[ServiceToken[Any], str]
Factory = Callable[["ServiceRegistry"], Any]


@dataclass
class _Entry:
    factory: Factory | None
    instance: Any = None
    built: bool = False


class ServiceRegistry:
    """Composition context mapping tokens to lazily built singletons.

    A registry is owned by whoever builds it (normally the process driver), so
    tests can create as many independent ones as they need.
    """

    def __init__(self) -> None:
        self._entries: dict[Token, _Entry] = {}
        self._resolving: list[Token] = []

    def register_singleton(
        self,
        token: Token,
        factory: Factory | None = None,
        *,
        instance: Any = None,
        replace: bool = False,
    ) -> None:
        if (factory is None) == (instance is None):
            raise ValueError("register_singleton() needs exactly one of factory or instance")
        if token in self._entries:
            if not replace:
                raise DuplicateTokenError(token)
            logger.warning("service_token_replaced", extra={"token": repr(token)})

        if factory is not None:
            self._entries[token] = _Entry(factory=factory)
        else:
            self._entries[token] = _Entry(factory=None, instance=instance, built=True)

    def is_registered(self, token: Token) -> bool:
        return token in self._entries

    @overload
    def resolve(self, token: ServiceToken[T]) -> T: ...

    @overload
    def resolve(self, token: str) -> Any: ...

    def resolve(self, token: Token) -> Any:
        entry = self._entries.get(token)
        if entry is None:
            raise UnregisteredTokenError(token)
        if entry.built:
            return entry.instance

        if token in self._resolving:
            start = self._resolving.index(token)
            raise CircularDependencyError([*self._resolving[start:], token])

        factory = cast(Factory, entry.factory)
        self._resolving.append(token)
        try:
            instance = factory(self)
        finally:
            self._resolving.pop()

        entry.instance = instance
        entry.built = True
        logger.debug("service_built", extra={"token": repr(token)})
        return instance

    def peek(self, token: Token) -> Any:
        """Return the cached instance, or None when it was never built."""
        entry = self._entries.get(token)
        if entry is None or not entry.built:
            return None
        return entry.instance

    def tokens(self) -> list[Token]:
        return list(self._entries)


ENV_CONFIG: ServiceToken[EnvConfig] = ServiceToken("EnvConfig")
SERVER_FACTORY: ServiceToken[ServerFactory] = ServiceToken("ServerFactory")
ROUTER: ServiceToken[Router] = ServiceToken("Router")
SWAGGER_CONFIG: ServiceToken[SwaggerConfig] = ServiceToken("SwaggerConfig")
DATABASE: ServiceToken[Engine] = ServiceToken("Database")


def build_container(source: Mapping[str, str] | None = None) -> ServiceRegistry:
    """Composition root: wire every bootstrap service with explicit dependencies."""
    from rango_api import config as config_module
    from rango_api.bootstrap.docs import SwaggerConfig
    from rango_api.bootstrap.server import ServerFactory
    from rango_api.database import database_url, init_db
    from rango_api.routes import Router

    registry = ServiceRegistry()
    registry.register_singleton(ENV_CONFIG, lambda _r: config_module.load(source))
    registry.register_singleton(SERVER_FACTORY, lambda r: ServerFactory(r.resolve(ENV_CONFIG), registry=r))
    registry.register_singleton(ROUTER, lambda _r: Router())
    registry.register_singleton(SWAGGER_CONFIG, lambda r: SwaggerConfig(r.resolve(ENV_CONFIG)))
    registry.register_singleton(DATABASE, lambda r: init_db(database_url(r.resolve(ENV_CONFIG))))
    return registry
