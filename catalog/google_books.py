"""
Async client for the Google Books volumes search endpoint.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class CatalogError(Exception):
    """The upstream catalog could not be queried."""

    message = "Failed to fetch books from Google Books API"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class SearchQuery(BaseModel):
    """Search parameters accepted by the proxy."""
    q: str = Field(..., min_length=1, description="Free-text query")
    filter: Optional[str] = Field(None, description="Google Books filter (e.g. ebooks)")
    print_type: Optional[str] = Field(None, description="all, books or magazines")
    order_by: Optional[str] = Field(None, description="relevance or newest")
    lang_restrict: Optional[str] = Field(None, description="Two-letter language code")
    start_index: int = Field(0, ge=0, description="Pagination offset")


class SearchResult(BaseModel):
    """One catalog hit, flattened for the frontend."""
    id: str
    title: str = "Untitled"
    authors: List[str] = Field(default_factory=list)
    description: str = ""
    rating: Optional[float] = None
    thumbnail: str = ""
    infoLink: str = ""
    genre: str = ""

    @classmethod
    def from_volume(cls, item: Dict[str, Any]) -> "SearchResult":
        info = item.get("volumeInfo") or {}
        categories = info.get("categories") or []
        return cls(
            id=item["id"],
            title=info.get("title") or "Untitled",
            authors=info.get("authors") or [],
            description=info.get("description") or "",
            rating=info.get("averageRating"),
            thumbnail=(info.get("imageLinks") or {}).get("thumbnail") or "",
            infoLink=info.get("infoLink") or "",
            genre=categories[0] if categories else "",
        )


class GoogleBooksClient:
    """
    Pass-through search proxy to Google Books.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        max_results: int = 20,
        timeout: float = 10,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.max_results = max_results
        self.client_config = {
            "timeout": timeout,
            "follow_redirects": True,
        }

    def build_params(self, query: SearchQuery) -> Dict[str, Any]:
        """Translate a SearchQuery into Google Books query parameters."""
        params: Dict[str, Any] = {
            "q": query.q,
            "maxResults": self.max_results,
            "startIndex": query.start_index,
        }
        optional = {
            "filter": query.filter,
            "printType": query.print_type,
            "orderBy": query.order_by,
            "langRestrict": query.lang_restrict,
            "key": self.api_key,
        }
        params.update({name: value for name, value in optional.items() if value})
        return params

    async def search(self, query: SearchQuery) -> List[SearchResult]:
        """
        Run a search against Google Books.

        Args:
            query: Validated search parameters

        Returns:
            Flattened results, possibly empty

        Raises:
            CatalogError: on transport errors, non-2xx answers or unreadable bodies
        """
        try:
            async with httpx.AsyncClient(**self.client_config) as client:
                response = await client.get(self.base_url, params=self.build_params(query))
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Google Books API error",
                status_code=e.response.status_code,
                body=e.response.text[:500],
            )
            raise CatalogError()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Google Books API request failed", error=str(e))
            raise CatalogError()

        results = []
        for item in data.get("items") or []:
            try:
                results.append(SearchResult.from_volume(item))
            except (KeyError, ValueError) as e:
                logger.warning("Skipping malformed volume", error=str(e))
        logger.debug("Catalog search completed", q=query.q, results=len(results))
        return results
