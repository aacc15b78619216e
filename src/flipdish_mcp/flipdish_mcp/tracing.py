"""Optional Langfuse tracing of tool calls.

Tracing is enabled only when both Langfuse keys are configured. Everything
else in the server works the same without it.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from langfuse import Langfuse
from loguru import logger

from .config import Settings


def create_langfuse(settings: Settings) -> Langfuse | None:
    """Create a Langfuse client if credentials are configured.

    Returns None if Langfuse is not configured.
    """
    if not settings.langfuse_public_key or not settings.langfuse_secret_key:
        logger.info("Langfuse tracing disabled (no credentials)")
        return None

    logger.info("Langfuse tracing enabled ({})", settings.langfuse_base_url)
    return Langfuse(
        public_key=settings.langfuse_public_key,
        secret_key=settings.langfuse_secret_key,
        host=settings.langfuse_base_url,
    )


@contextmanager
def trace_tool_call(
    langfuse: Langfuse | None, name: str, arguments: dict[str, Any]
) -> Iterator[Any]:
    """Wrap a tool call in a Langfuse span, yielding the span (or None)."""
    if langfuse is None:
        yield None
        return

    with langfuse.start_as_current_span(name=f"tool:{name}", input=arguments) as span:
        yield span
