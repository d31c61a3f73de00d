"""Client-side tool executor."""
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from omnivoice.services.session.models import ToolInvocation
from omnivoice.services.tools.base import Tool, ToolDefinition
from omnivoice.services.tools.builtin import SearchBackend, builtin_tools

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[str]]


def tool_failure_message(tool_name: str) -> str:
    return f"Tool {tool_name} failed. Please try again."


class ToolExecutor:
    """
    Registry of client-side tools for one session.

    Handlers never raise: any exception is logged and turned into a text
    result, because an error escaping into the live session would end the call.
    """

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        self._tools: Dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Register a tool instance under its definition name."""
        if tool.name in self._tools:
            logger.warning(f"[TOOLS] Tool {tool.name} already registered, overwriting")
        self._tools[tool.name] = tool
        logger.debug(f"[TOOLS] Registered tool: {tool.name}")

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def definitions(self) -> List[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def run(self, name: str, parameters: Optional[Dict[str, Any]] = None) -> str:
        """Run a tool by name and always return a string."""
        tool = self._tools.get(name)
        if tool is None:
            logger.error(f"[TOOLS] No handler registered for tool '{name}'")
            return tool_failure_message(name)

        try:
            result = await tool.run(dict(parameters or {}))
        except Exception as e:
            logger.error(
                f"[TOOLS] Tool '{name}' raised {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            return tool_failure_message(name)

        return result if isinstance(result, str) else str(result)

    async def execute(self, invocation: ToolInvocation) -> str:
        """Execute one invocation issued by the remote model."""
        logger.info(
            f"[TOOLS] Executing {invocation.tool_name} "
            f"(invocation {invocation.invocation_id or 'n/a'})"
        )
        return await self.run(invocation.tool_name, invocation.parameters)

    def handler_for(self, name: str) -> ToolHandler:
        """Return a coroutine function suitable for a live session registry."""

        async def _handler(parameters: Dict[str, Any]) -> str:
            return await self.run(name, parameters)

        _handler.__name__ = f"{name}_handler"
        return _handler


def build_default_executor(search_backend: SearchBackend) -> ToolExecutor:
    """Executor holding every built-in tool."""
    return ToolExecutor(builtin_tools(search_backend))
