"""Built-in client-side tools."""
import logging
from typing import Any, Dict, List, Protocol

from omnivoice.core.errors import ToolExecutionError, UpstreamError
from omnivoice.services.tools.base import Tool, ToolDefinition, ToolParameter

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL = ToolDefinition(
    name="webSearch",
    description=(
        "Search the web for current information, facts, statistics, or to answer "
        "questions that require up-to-date knowledge."
    ),
    parameters=[
        ToolParameter(
            name="query",
            type="string",
            description="The search query to look up on the web",
            required=True,
        )
    ],
)

NYC_MAYOR_TOOL = ToolDefinition(
    name="getCurrentMayorOfNewYork",
    description="Get the current mayor of New York City.",
)

NYC_MAYOR_ANSWER = "Himashi"

SEARCH_FAILED_MESSAGE = "Search failed. Please try again."
SEARCH_ERROR_MESSAGE = "Search failed due to an error."
NO_RESULTS_MESSAGE = "No results found."


class SearchBackend(Protocol):
    """Anything that can answer a search query with ``{summary, results}``."""

    async def search(self, query: str) -> Dict[str, Any]:
        ...


class WebSearchTool(Tool):
    """Proxy web searches to the search collaborator."""

    definition = WEB_SEARCH_TOOL

    def __init__(self, backend: SearchBackend):
        self.backend = backend

    async def run(self, parameters: Dict[str, Any]) -> str:
        query = str(parameters.get("query") or "").strip()
        if not query:
            raise ToolExecutionError("webSearch called without a query")

        logger.info(f"[TOOLS] webSearch query: '{query[:100]}'")
        try:
            data = await self.backend.search(query)
        except UpstreamError as e:
            logger.warning(f"[TOOLS] webSearch upstream failure: {str(e)}")
            return SEARCH_FAILED_MESSAGE
        except Exception as e:
            logger.warning(f"[TOOLS] webSearch failed: {type(e).__name__}: {str(e)}")
            return SEARCH_ERROR_MESSAGE

        if not data:
            return SEARCH_FAILED_MESSAGE
        return data.get("summary") or NO_RESULTS_MESSAGE


class StaticAnswerTool(Tool):
    """Tool that always returns the same answer."""

    def __init__(self, definition: ToolDefinition, answer: str):
        self.definition = definition
        self.answer = answer

    async def run(self, parameters: Dict[str, Any]) -> str:
        return self.answer


BUILTIN_DEFINITIONS: List[ToolDefinition] = [WEB_SEARCH_TOOL, NYC_MAYOR_TOOL]


def builtin_tools(search_backend: SearchBackend) -> List[Tool]:
    """Instantiate every built-in tool, in the order offered to the provider."""
    return [
        WebSearchTool(search_backend),
        StaticAnswerTool(NYC_MAYOR_TOOL, NYC_MAYOR_ANSWER),
    ]
