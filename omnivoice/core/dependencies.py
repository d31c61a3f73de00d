"""FastAPI dependencies."""
from omnivoice.core.config import settings
from omnivoice.services.initiation.client import SessionInitiationClient
from omnivoice.services.search.service import SearchService


def get_initiation_client() -> SessionInitiationClient:
    """Get session initiation client instance."""
    return SessionInitiationClient(config=settings)


def get_search_service() -> SearchService:
    """Get search service instance."""
    return SearchService(config=settings)
