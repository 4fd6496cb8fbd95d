from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Optional

from fastapi import APIRouter, FastAPI
from starlette.routing import BaseRoute

from rango_api.errors import RegistrationError
from rango_api.routes.base import RouteGroup, RouteOptions
from rango_api.routes.health import HealthRoutes

CompletionCallback = Callable[[Optional[BaseException]], None]

logger = logging.getLogger("rango_api.routes")

__all__ = ["CompletionCallback", "HealthRoutes", "RouteGroup", "RouteOptions", "Router"]


def _route_keys(routes: Iterable[BaseRoute]) -> set[tuple[str, str]]:
    keys: set[tuple[str, str]] = set()
    for route in routes:
        path = getattr(route, "path", None)
        if path is None:
            continue
        for method in getattr(route, "methods", None) or ():
            keys.add((method, path))
    return keys


class Router:
    """Attaches route groups to a server, each through an isolated ``APIRouter``.

    Registering a group that is already on the server is a no-op, so repeated
    calls against the same server are idempotent. Attached method/path pairs are
    recorded in ``server.state.route_keys``; a group that collides with one of
    them or with a route added directly on the app is rejected with
    ``RegistrationError`` and nothing from that group is attached.
    """

    def __init__(self, groups: Sequence[RouteGroup] | None = None) -> None:
        self.groups: list[RouteGroup] = list(groups) if groups is not None else [HealthRoutes()]
        self._pending: set[asyncio.Task[FastAPI]] = set()

    async def register(self, server: FastAPI, options: RouteOptions | None = None) -> FastAPI:
        options = options or RouteOptions()
        attached: set[str] = getattr(server.state, "route_groups", None) or set()
        taken: set[tuple[str, str]] = getattr(server.state, "route_keys", None) or set()
        server.state.route_groups = attached
        server.state.route_keys = taken

        for group in self.groups:
            if not group.name:
                raise RegistrationError(type(group).__name__, "route group has no name")
            if group.name in attached:
                logger.debug("route_group_already_registered", extra={"route_group": group.name})
                continue

            try:
                scoped = APIRouter(
                    prefix=f"{options.prefix}{group.prefix}",
                    tags=list(group.tags),
                    dependencies=list(options.dependencies),
                )
                group.attach(scoped)
            except RegistrationError:
                raise
            except Exception as exc:
                raise RegistrationError(group.name, str(exc) or type(exc).__name__) from exc

            # Routes added straight onto the app (e.g. docs) count as taken too.
            keys = _route_keys(scoped.routes)
            conflicts = keys & (taken | _route_keys(server.router.routes))
            if conflicts:
                listed = ", ".join(f"{method} {path}" for method, path in sorted(conflicts))
                raise RegistrationError(group.name, f"conflicting routes: {listed}")

            try:
                server.include_router(scoped)
            except Exception as exc:
                raise RegistrationError(group.name, str(exc) or type(exc).__name__) from exc
            taken.update(keys)
            attached.add(group.name)
            logger.info("route_group_registered", extra={"route_group": group.name})

        return server

    def register_routes(
        self,
        server: FastAPI,
        options: RouteOptions | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> FastAPI:
        """Callback-style adapter over ``register``.

        Outside an event loop registration finishes before this returns. Inside
        a running loop it is scheduled as a task and ``on_complete`` fires once
        the task is done. ``on_complete`` is called exactly once, with the error
        or with None.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                asyncio.run(self.register(server, options))
            except Exception as exc:
                if on_complete is None:
                    raise
                on_complete(exc)
                return server
            if on_complete is not None:
                on_complete(None)
            return server

        task = loop.create_task(self.register(server, options))
        self._pending.add(task)

        def _finished(done: asyncio.Task[FastAPI]) -> None:
            self._pending.discard(done)
            error = asyncio.CancelledError() if done.cancelled() else done.exception()
            if on_complete is not None:
                on_complete(error)
            elif error is not None:
                logger.error("route_registration_failed", extra={"error": str(error)})

        task.add_done_callback(_finished)
        return server
