"""MCP server wiring.

Builds a low-level `mcp` Server around a ToolExecutor and a WidgetResolver.
This is the outer protocol boundary: any exception from a tool becomes an
`isError` result so one failed call never takes the connection down.
"""

from typing import Any

import mcp.types as types
from langfuse import Langfuse
from loguru import logger
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents

from . import __version__
from .executor import ToolExecutor, ToolResult
from .tools import TOOLS, ToolDefinition
from .tracing import trace_tool_call
from .widgets import WidgetResolver, WidgetResource

SERVER_NAME = "flipdish"


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------
# mcp types expose `_meta` only through its alias, so payloads are built as
# dicts and validated.


def to_mcp_tool(tool: ToolDefinition) -> types.Tool:
    payload: dict[str, Any] = {
        "name": tool.name.value,
        "description": tool.description,
        "inputSchema": tool.input_schema,
    }
    if tool.widget is not None:
        payload["_meta"] = tool.widget.meta
    return types.Tool.model_validate(payload)


def to_mcp_resource(resource: WidgetResource) -> types.Resource:
    return types.Resource.model_validate(
        {
            "uri": resource.uri,
            "name": resource.name,
            "description": resource.description,
            "mimeType": resource.mime_type,
            "_meta": resource.meta,
        }
    )


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    payload: dict[str, Any] = {
        "content": [{"type": "text", "text": result.text}],
        "isError": False,
    }
    if result.structured is not None:
        payload["structuredContent"] = result.structured
    if result.meta is not None:
        payload["_meta"] = result.meta
    return types.CallToolResult.model_validate(payload)


def error_result(error: BaseException) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=f"Error: {error}")],
        isError=True,
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def handle_tool_call(
    executor: ToolExecutor,
    name: str,
    arguments: dict[str, Any] | None,
    langfuse: Langfuse | None = None,
) -> types.CallToolResult:
    """Execute one tool call and convert the outcome to a CallToolResult."""
    arguments = arguments or {}
    logger.info("CallTool request: {} args={}", name, arguments)

    with trace_tool_call(langfuse, name, arguments) as span:
        try:
            result = await executor.execute(name, arguments)
        except Exception as e:
            logger.opt(exception=True).error("Tool {} failed: {}", name, e)
            if span is not None:
                span.update(level="ERROR", status_message=str(e))
            return error_result(e)

        if span is not None:
            span.update(output=result.structured)

    logger.info("Tool {} executed successfully", name)
    return to_call_tool_result(result)


def create_server(
    executor: ToolExecutor,
    widgets: WidgetResolver,
    langfuse: Langfuse | None = None,
) -> Server:
    """Create an MCP server bound to one executor (and so one session)."""
    server = Server(SERVER_NAME, version=__version__)
    tools = [to_mcp_tool(tool) for tool in TOOLS]

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        logger.debug("ListTools: returning {} tools", len(tools))
        return tools

    # Arguments are validated by the pydantic models in tools.py
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        return await handle_tool_call(executor, name, arguments, langfuse)

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        return [to_mcp_resource(resource) for resource in widgets.resources()]

    @server.read_resource()
    async def read_resource(uri: Any) -> list[ReadResourceContents]:
        resource = widgets.read(str(uri))
        logger.info("Serving {}: {}", resource.name, resource.uri)
        return [
            ReadResourceContents(
                content=resource.html, mime_type=resource.mime_type, meta=resource.meta
            )
        ]

    return server
