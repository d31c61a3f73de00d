"""Unit tests for the client-side tool executor."""
import pytest

from omnivoice.core.errors import UpstreamError
from omnivoice.services.session.models import ToolInvocation
from omnivoice.services.tools.base import Tool, ToolDefinition
from omnivoice.services.tools.builtin import (
    NO_RESULTS_MESSAGE,
    NYC_MAYOR_ANSWER,
    SEARCH_ERROR_MESSAGE,
    SEARCH_FAILED_MESSAGE,
    WEB_SEARCH_TOOL,
)
from omnivoice.services.tools.executor import ToolExecutor, build_default_executor

from tests.fakes import RecordingSearch


class ExplodingTool(Tool):
    definition = ToolDefinition(name="explode", description="Always fails")

    async def run(self, parameters):
        raise RuntimeError("kaboom")


class TestToolDefinitions:
    def test_ultravox_schema(self):
        schema = WEB_SEARCH_TOOL.to_ultravox_schema()["temporaryTool"]
        assert schema["modelToolName"] == "webSearch"
        assert schema["client"] == {}
        parameter = schema["dynamicParameters"][0]
        assert parameter["name"] == "query"
        assert parameter["location"] == "PARAMETER_LOCATION_BODY"
        assert parameter["schema"]["type"] == "string"
        assert parameter["required"] is True

    def test_default_registry(self, tool_executor):
        assert tool_executor.names() == ["webSearch", "getCurrentMayorOfNewYork"]
        assert "webSearch" in tool_executor
        assert len(tool_executor) == 2


class TestWebSearch:
    @pytest.mark.asyncio
    async def test_returns_summary(self, tool_executor, search_backend):
        """Test that webSearch hands back the search summary."""
        result = await tool_executor.execute(
            ToolInvocation(
                tool_name="webSearch",
                parameters={"query": "capital of France"},
                invocation_id="inv-1",
            )
        )
        assert result == "Paris is the capital of France."
        assert search_backend.queries == ["capital of France"]

    @pytest.mark.asyncio
    async def test_upstream_failure(self):
        executor = build_default_executor(RecordingSearch(error=UpstreamError("503", status_code=503)))
        assert await executor.run("webSearch", {"query": "x"}) == SEARCH_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_unexpected_failure(self):
        executor = build_default_executor(RecordingSearch(error=ConnectionError("down")))
        assert await executor.run("webSearch", {"query": "x"}) == SEARCH_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_empty_summary(self):
        executor = build_default_executor(RecordingSearch(summary=""))
        assert await executor.run("webSearch", {"query": "x"}) == NO_RESULTS_MESSAGE

    @pytest.mark.asyncio
    async def test_missing_query(self, tool_executor, search_backend):
        result = await tool_executor.run("webSearch", {})
        assert result == "Tool webSearch failed. Please try again."
        assert search_backend.queries == []


class TestExecutor:
    @pytest.mark.asyncio
    async def test_static_answer(self, tool_executor):
        assert await tool_executor.run("getCurrentMayorOfNewYork") == NYC_MAYOR_ANSWER

    @pytest.mark.asyncio
    async def test_throwing_tool_returns_text(self):
        """Test that a failing tool never raises into the session."""
        executor = ToolExecutor([ExplodingTool()])
        result = await executor.run("explode", {})
        assert isinstance(result, str)
        assert result == "Tool explode failed. Please try again."

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tool_executor):
        assert await tool_executor.run("nope") == "Tool nope failed. Please try again."

    @pytest.mark.asyncio
    async def test_handler_for(self, tool_executor):
        handler = tool_executor.handler_for("webSearch")
        assert await handler({"query": "capital of France"}) == "Paris is the capital of France."
