# =============================================================================
# app/routing.py - Route Class and Startup Route Checks
# =============================================================================
# ApiRoute applies the enum-by-name rule to values returned from endpoints
# that have no ApiModel response model (plain dicts, lists, BaseModels).
#
# validate_routes() runs once in create_app() after all routers are included
# and refuses to start the host when a route:
# - was not created with ApiRoute
# - declares a response model that would write enums by value
# - requires an authorization policy that is not registered
#
# Usage:
#   from fastapi import APIRouter
#   from app.routing import ApiRoute
#
#   router = APIRouter(prefix="/api", route_class=ApiRoute)
# =============================================================================

import functools
import inspect
import logging
from typing import Any, Callable, Iterable, Iterator, Mapping

from fastapi import FastAPI
from fastapi.routing import APIRoute
from pydantic import BaseModel

from app.exceptions import RouteConfigurationError, UnknownPolicyError
from app.serialization import SEQUENCE_TYPES, ApiModel, enum_name, has_enum, value_enum_types

logger = logging.getLogger(__name__)


# =============================================================================
# Enum Names in Return Values
# =============================================================================

def name_enums(result: Any) -> Any:
    """Write enums by name in an endpoint's return value; other results pass through."""
    plain = _dump_plain_models(result)
    if not has_enum(plain):
        return result
    return enum_name(plain)


def _dump_plain_models(value: Any) -> Any:
    # ApiModel instances already serialize enums by name
    if isinstance(value, BaseModel) and not isinstance(value, ApiModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return {k: _dump_plain_models(v) for k, v in value.items()}
    if isinstance(value, SEQUENCE_TYPES):
        return [_dump_plain_models(v) for v in value]
    return value


def named_enum_endpoint(endpoint: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap an endpoint so its return value goes through name_enums()."""
    if getattr(endpoint, "names_enums", False) or not inspect.isroutine(endpoint):
        return endpoint
    if inspect.isgeneratorfunction(endpoint) or inspect.isasyncgenfunction(endpoint):
        return endpoint

    if inspect.iscoroutinefunction(endpoint):
        @functools.wraps(endpoint)
        async def wrapper(*args, **kwargs):
            return name_enums(await endpoint(*args, **kwargs))
    else:
        @functools.wraps(endpoint)
        def wrapper(*args, **kwargs):
            return name_enums(endpoint(*args, **kwargs))

    wrapper.names_enums = True
    return wrapper


class ApiRoute(APIRoute):
    """APIRoute whose endpoint results write enums by name."""

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any):
        super().__init__(path, named_enum_endpoint(endpoint), **kwargs)


# =============================================================================
# Startup Checks
# =============================================================================

def iter_api_routes(routes: Iterable[Any]) -> Iterator[APIRoute]:
    """Yield every APIRoute, descending into included routers."""
    for route in routes:
        if isinstance(route, APIRoute):
            yield route
        elif hasattr(route, "original_router"):
            # Routers included lazily keep their own route list
            yield from iter_api_routes(route.original_router.routes)


def required_policies(route: APIRoute) -> list[str]:
    """Names of the authorization policies a route's dependencies enforce."""
    found: list[str] = []
    pending = list(route.dependant.dependencies)
    while pending:
        dependant = pending.pop(0)
        name = getattr(dependant.call, "policy_name", None)
        if name is not None and name not in found:
            found.append(name)
        pending.extend(dependant.dependencies)
    return found


def route_label(route: APIRoute) -> str:
    methods = ",".join(sorted(route.methods or ()))
    return f"{methods} {route.path}"


def validate_routes(app: FastAPI) -> None:
    """
    Check every route on the app before it starts serving.

    Raises:
        RouteConfigurationError: If a route would write enums by value
        UnknownPolicyError: If a route requires an unregistered policy
    """
    policies = app.state.authorization_policies
    count = 0
    for route in iter_api_routes(app.routes):
        label = route_label(route)
        if not isinstance(route, ApiRoute):
            raise RouteConfigurationError(label, "route was not created with ApiRoute")
        if route.response_model is not None:
            value_types = value_enum_types(route.response_model)
            if value_types:
                raise RouteConfigurationError(
                    label,
                    f"response model writes enums by value ({', '.join(value_types)})",
                    value_types,
                )
        for policy in required_policies(route):
            if policy not in policies:
                raise UnknownPolicyError(policy, label)
        count += 1
    logger.debug(f"Validated {count} routes")
