"""
Research Service.

Grounded web search for trends, techniques and product questions.
"""

from chromalab.core.backend import GenerativeBackend, GroundedSearchResult
from chromalab.core.exceptions import InvalidRequestError, ResearchError
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class ResearchService:
    """Answers stylist research questions with cited sources."""

    def __init__(self, backend: GenerativeBackend):
        self.backend = backend

    async def search(self, query: str) -> GroundedSearchResult:
        """
        Run a grounded search.

        Raises:
            InvalidRequestError: Empty query
            ResearchError: The search failed
        """
        query = (query or "").strip()
        if not query:
            raise InvalidRequestError("Please enter a search query.")

        try:
            result = await self.backend.search_with_grounding(query)
        except Exception as e:
            logger.error(
                "Grounded search failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ResearchError(f"Grounded search failed: {e}") from e

        # Same uri cited by several chunks
        seen = set()
        sources = []
        for source in result.sources:
            if source.uri not in seen:
                seen.add(source.uri)
                sources.append(source)

        logger.info("Grounded search completed", sources=len(sources))
        return GroundedSearchResult(text=result.text, sources=sources)
