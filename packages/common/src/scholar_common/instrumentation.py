"""OpenTelemetry instrumentation helpers.

Provides:
- Tracer access for spans
- Function decorators for automatic span creation
"""

import inspect
from functools import wraps
from typing import Any, Callable

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from scholar_common.config import get_settings


# Global tracer provider (initialized once)
_tracer_provider: TracerProvider | None = None


def init_telemetry(service_name: str = "scholar-kb", console_export: bool = False) -> None:
    """Initialize OpenTelemetry tracing.

    Call this once at application startup. Spans are only exported when
    ``console_export`` is set; otherwise they are created and dropped.

    Args:
        service_name: Name of the service for traces (default: "scholar-kb")
        console_export: Print finished spans to stdout

    Example:
        >>> from scholar_common import init_telemetry
        >>> init_telemetry(service_name="scholar-crawl", console_export=True)
    """
    global _tracer_provider

    if _tracer_provider is not None:
        return  # Already initialized

    _tracer_provider = TracerProvider(
        resource=Resource.create({"service.name": service_name}),
    )

    if console_export:
        _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(_tracer_provider)


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer for creating spans.

    Args:
        name: Tracer name (typically module name like "scholar_client.client")

    Returns:
        Tracer instance

    Example:
        >>> tracer = get_tracer("scholar_client.cache")
        >>> with tracer.start_as_current_span("save_snapshot"):
        ...     pass
    """
    if _tracer_provider is None:
        init_telemetry(console_export=get_settings().otel_console_export)

    # the process-wide provider can only be set once; ours always applies
    return _tracer_provider.get_tracer(name)


def instrument_function(span_name: str | None = None) -> Callable:
    """Decorator to automatically create a span for a function.

    Args:
        span_name: Name for the span (default: function name)

    Returns:
        Decorator function

    Example:
        >>> @instrument_function("query_profile")
        ... async def query_profile(self, user: str, limit: int) -> list[Article]:
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        actual_span_name = span_name or func.__name__

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = get_tracer(func.__module__)
            with tracer.start_as_current_span(actual_span_name):
                return await func(*args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = get_tracer(func.__module__)
            with tracer.start_as_current_span(actual_span_name):
                return func(*args, **kwargs)

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
