"""Route composition: maps paths to views and applies the session policy.

Every protected route goes through the same rule: loading indicator while
the session is resolving, redirect to /login when anonymous, the view when
authenticated. Role checks are the view's business (see AdminView).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from reware.views.session import SessionState

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"
NOT_FOUND_VIEW = "not_found"


class Access(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"


@dataclass(frozen=True)
class Route:
    path: str
    view: str
    access: Access


class Outcome(str, Enum):
    """What the session should do with a path."""

    RENDER = "render"
    LOADING = "loading"
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RouteDecision:
    outcome: Outcome
    path: str
    view: str | None = None
    redirect_to: str | None = None


ROUTES: tuple[Route, ...] = (
    Route("/login", "login", Access.PUBLIC),
    Route("/signup", "signup", Access.PUBLIC),
    Route("/dashboard", "dashboard", Access.PROTECTED),
    Route("/admin", "admin", Access.PROTECTED),
)


def normalize_path(path: str) -> str:
    """Strip query, fragment and trailing slash; '' becomes '/'."""
    path = path.split("?", 1)[0].split("#", 1)[0].strip()
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


class Router:
    """Resolves a path against the current SessionState."""

    def __init__(self, routes: tuple[Route, ...] = ROUTES) -> None:
        self._routes = {r.path: r for r in routes}

    @property
    def paths(self) -> list[str]:
        return ["/", *self._routes]

    def match(self, path: str) -> Route | None:
        return self._routes.get(normalize_path(path))

    def resolve(self, path: str, state: SessionState) -> RouteDecision:
        path = normalize_path(path)
        if path == "/":
            if state.is_loading:
                return RouteDecision(Outcome.LOADING, path)
            target = DASHBOARD_PATH if state.is_authenticated else LOGIN_PATH
            return RouteDecision(Outcome.REDIRECT, path, redirect_to=target)

        route = self._routes.get(path)
        if route is None:
            return RouteDecision(Outcome.NOT_FOUND, path, view=NOT_FOUND_VIEW)
        if route.access == Access.PUBLIC:
            return RouteDecision(Outcome.RENDER, path, view=route.view)
        if state.is_loading:
            return RouteDecision(Outcome.LOADING, path, view=route.view)
        if not state.is_authenticated:
            return RouteDecision(Outcome.REDIRECT, path, redirect_to=LOGIN_PATH)
        return RouteDecision(Outcome.RENDER, path, view=route.view)
