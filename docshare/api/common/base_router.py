from typing import Any, Callable

from fastapi import APIRouter

from docshare.api.common.decorators import handle_route_errors, log_route_call


class BaseRouter:
    """APIRouter wrapper that applies error handling and call logging to every route."""

    def __init__(self, router: APIRouter):
        self.router = router

    def add_api_route(
        self,
        path: str,
        endpoint: Callable[..., Any],
        *,
        methods: list[str],
        **kwargs: Any,
    ) -> None:
        decorated_endpoint = log_route_call(handle_route_errors(endpoint))
        self.router.add_api_route(path, decorated_endpoint, methods=methods, **kwargs)

    def get(self, path: str, **kwargs: Any):
        return self._create_route_decorator(path, methods=["GET"], **kwargs)

    def post(self, path: str, **kwargs: Any):
        return self._create_route_decorator(path, methods=["POST"], **kwargs)

    def put(self, path: str, **kwargs: Any):
        return self._create_route_decorator(path, methods=["PUT"], **kwargs)

    def delete(self, path: str, **kwargs: Any):
        return self._create_route_decorator(path, methods=["DELETE"], **kwargs)

    def _create_route_decorator(self, path: str, methods: list[str], **kwargs: Any):
        def decorator(endpoint: Callable[..., Any]) -> Callable[..., Any]:
            self.add_api_route(path, endpoint, methods=methods, **kwargs)
            return endpoint

        return decorator
