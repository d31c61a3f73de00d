"""Web search collaborator backed by the DuckDuckGo instant answer API."""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from omnivoice.core.config import Settings, settings as default_settings
from omnivoice.core.errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_RELATED_TOPICS = 5
NO_RESULTS_SUMMARY = "No specific results found. Try rephrasing the search query."


class RelatedTopic(BaseModel):
    text: str
    url: str = ""


class SearchResults(BaseModel):
    """Fields extracted from an instant answer response."""

    abstract: str = ""
    abstractSource: str = ""
    abstractURL: str = ""
    answer: str = ""
    definition: str = ""
    relatedTopics: List[RelatedTopic] = []


def extract_results(data: Dict[str, Any]) -> SearchResults:
    """Pick the useful fields out of a raw DuckDuckGo response."""
    topics = []
    for topic in (data.get("RelatedTopics") or [])[:MAX_RELATED_TOPICS]:
        text = topic.get("Text") or ""
        if text:
            topics.append(RelatedTopic(text=text, url=topic.get("FirstURL") or ""))

    return SearchResults(
        abstract=data.get("Abstract") or "",
        abstractSource=data.get("AbstractSource") or "",
        abstractURL=data.get("AbstractURL") or "",
        answer=data.get("Answer") or "",
        definition=data.get("Definition") or "",
        relatedTopics=topics,
    )


def summarize(results: SearchResults) -> str:
    """Format results as one sentence the voice model can read out."""
    if results.answer:
        return results.answer
    if results.abstract:
        return f"{results.abstract} (Source: {results.abstractSource})"
    if results.definition:
        return results.definition
    if results.relatedTopics:
        return "Related information: " + ". ".join(t.text for t in results.relatedTopics)
    return NO_RESULTS_SUMMARY


class SearchService:
    """Server-side search used by POST /search."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = config or default_settings
        self._transport = transport

    async def search(self, query: str) -> Dict[str, Any]:
        """
        Run a search.

        Args:
            query: Free-text query

        Returns:
            ``{"summary": str, "results": dict}``

        Raises:
            UpstreamError: The search API answered with a non-2xx status
        """
        params = {"q": query, "format": "json", "no_html": "1"}
        async with httpx.AsyncClient(
            transport=self._transport, timeout=self.settings.request_timeout
        ) as client:
            response = await client.get(self.settings.search_url, params=params)

        if not response.is_success:
            logger.error(f"[SEARCH] Upstream search failed - Status: {response.status_code}")
            raise UpstreamError(
                "Search failed", status_code=response.status_code, body=response.text
            )

        results = extract_results(response.json())
        summary = summarize(results)
        logger.info(f"[SEARCH] Query '{query[:100]}' -> summary length {len(summary)}")
        return {"summary": summary, "results": results.model_dump()}
