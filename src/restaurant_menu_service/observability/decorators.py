"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace

F = TypeVar("F", bound=Callable[..., Any])


def _annotate_failure(span: trace.Span, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))
    span.record_exception(error)


def traced(span_name: str | None = None, service_name: str = "menu-svc") -> Callable[[F], F]:
    """Decorator to wrap a function in an OpenTelemetry span.

    Keyword arguments named ``location_id`` are recorded as the
    ``menu.location_id`` span attribute. Both sync and async functions are
    supported; exceptions are recorded on the span and re-raised.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Service name for span attributes

    Returns:
        Decorated function with tracing

    Example:
        @traced("catalog.get_menu")
        async def get_menu(self, location_id: str) -> CatalogResponse:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def start_span(kwargs: dict[str, Any]) -> Any:
            attributes: dict[str, Any] = {"service.name": service_name}
            if span_name:
                attributes["function.name"] = func.__name__
            if kwargs.get("location_id"):
                attributes["menu.location_id"] = kwargs["location_id"]
            return tracer.start_as_current_span(name, attributes=attributes)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start_span(kwargs) as span:
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _annotate_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with start_span(kwargs) as span:
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _annotate_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
