from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

from fastapi import APIRouter


@dataclass(frozen=True)
class RouteOptions:
    prefix: str = ""
    dependencies: Sequence[Any] = field(default_factory=tuple)


class RouteGroup:
    """A named bundle of endpoints attached to its own ``APIRouter``.

    Subclasses set ``name`` (unique per server) and implement ``attach``.
    Router-level dependencies added inside ``attach`` stay within the group.
    """

    name: ClassVar[str] = ""
    prefix: ClassVar[str] = ""
    tags: ClassVar[tuple[str, ...]] = ()

    def attach(self, router: APIRouter) -> None:
        raise NotImplementedError
