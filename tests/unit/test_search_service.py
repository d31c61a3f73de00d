"""Unit tests for the search collaborator."""
import pytest

from omnivoice.core.errors import UpstreamError
from omnivoice.services.search.service import NO_RESULTS_SUMMARY, extract_results, summarize


class TestSummaryPrecedence:
    def test_answer_wins(self):
        results = extract_results({"Answer": "42", "Abstract": "Long text"})
        assert summarize(results) == "42"

    def test_abstract_with_source(self):
        results = extract_results({"Abstract": "Paris is the capital of France.", "AbstractSource": "Wikipedia"})
        assert summarize(results) == "Paris is the capital of France. (Source: Wikipedia)"

    def test_definition(self):
        assert summarize(extract_results({"Definition": "A word."})) == "A word."

    def test_related_topics_limited_and_filtered(self):
        topics = [{"Text": f"Topic {i}", "FirstURL": f"https://x/{i}"} for i in range(7)]
        topics.insert(0, {"Name": "group without text"})
        results = extract_results({"RelatedTopics": topics})
        assert len(results.relatedTopics) == 4
        assert summarize(results).startswith("Related information: Topic 0. Topic 1")

    def test_nothing_found(self):
        assert summarize(extract_results({})) == NO_RESULTS_SUMMARY


class TestSearchService:
    @pytest.mark.asyncio
    async def test_search_request(self, search_service, http):
        http.queue(200, json={"Answer": "Paris"})

        data = await search_service.search("capital of France")

        assert data["summary"] == "Paris"
        assert data["results"]["answer"] == "Paris"
        request = http.last
        assert request.url.host == "api.duckduckgo.com"
        assert request.url.params["q"] == "capital of France"
        assert request.url.params["format"] == "json"
        assert request.url.params["no_html"] == "1"

    @pytest.mark.asyncio
    async def test_upstream_failure(self, search_service, http):
        http.queue(503, text="unavailable")
        with pytest.raises(UpstreamError):
            await search_service.search("anything")
