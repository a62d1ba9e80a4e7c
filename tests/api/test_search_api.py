"""
Tests for the search proxy and health endpoints.
"""

from unittest.mock import AsyncMock

from catalog.google_books import CatalogError, SearchResult


class TestSearchEndpoint:
    """Test cases for GET /api/search."""

    def test_search_returns_results(self, token_context, token_client):
        token_context.catalog.search = AsyncMock(return_value=[
            SearchResult(id="vol-1", title="Dune", authors=["Frank Herbert"], genre="Fiction"),
        ])

        response = token_client.get("/api/search", params={"q": "dune"})

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == "vol-1"
        assert data[0]["title"] == "Dune"
        assert data[0]["infoLink"] == ""

    def test_search_needs_no_credentials(self, session_context, session_client):
        session_context.catalog.search = AsyncMock(return_value=[])

        response = session_client.get("/api/search", params={"q": "dune"})

        assert response.status_code == 200
        assert response.json() == []

    def test_search_parameters_passed_through(self, token_context, token_client):
        token_context.catalog.search = AsyncMock(return_value=[])

        token_client.get("/api/search", params={
            "q": "  dune ",
            "filter": "ebooks",
            "printType": "books",
            "orderBy": "newest",
            "langRestrict": "en",
            "startIndex": 20,
        })

        query = token_context.catalog.search.await_args.args[0]
        assert query.q == "dune"
        assert query.filter == "ebooks"
        assert query.print_type == "books"
        assert query.order_by == "newest"
        assert query.lang_restrict == "en"
        assert query.start_index == 20

    def test_search_missing_query(self, token_context, token_client):
        token_context.catalog.search = AsyncMock(return_value=[])

        for params in ({}, {"q": ""}, {"q": "   "}):
            response = token_client.get("/api/search", params=params)

            assert response.status_code == 400
            assert response.json()["error"] == 'Missing query parameter "q"'
        token_context.catalog.search.assert_not_called()

    def test_search_negative_start_index(self, token_client):
        response = token_client.get("/api/search", params={"q": "dune", "startIndex": -1})

        assert response.status_code == 400
        assert response.json()["field"] == "startIndex"

    def test_search_upstream_failure(self, token_context, token_client):
        token_context.catalog.search = AsyncMock(side_effect=CatalogError())

        response = token_client.get("/api/search", params={"q": "dune"})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch books from Google Books API"


class TestHealthEndpoint:
    """Test cases for GET /health."""

    def test_health_check(self, token_client):
        response = token_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database_status"] == "healthy"
        assert data["version"] == "1.0.0"

    def test_health_check_degraded(self, token_context, token_client):
        token_context.books.health_check = AsyncMock(return_value={"status": "unhealthy", "error": "down"})

        response = token_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["database_status"] == "unhealthy"
