import pytest


def test_search_movies_route(client):
    response = client.get("/tools/search_movies", params={"query": "space journey", "k": 3})

    assert response.status_code == 200
    payload = response.json()
    assert payload["tool"] == "search_movies"
    assert len(payload["results"]) == 3
    assert payload["results"][0]["title"] == "Starlight Voyage"


def test_genre_route_requires_genre(client):
    response = client.get("/tools/search_by_genre")

    assert response.status_code == 400
    assert response.json()["detail"] == "genre parameter is required"


def test_mood_route_expands_phrase(client):
    response = client.get("/tools/search_by_mood", params={"mood": "scary"})

    assert response.status_code == 200
    assert response.json()["query"] == "horror scary suspense thriller"


def test_similar_route_accepts_title(client):
    response = client.get("/tools/find_similar_movies", params={"title": "Cabin Screams"})

    assert response.status_code == 200
    assert 9 not in [movie["id"] for movie in response.json()["results"]]


def test_similar_route_requires_description_or_title(client):
    response = client.get("/tools/find_similar_movies")

    assert response.status_code == 400
    assert response.json()["detail"] == "description or title parameter is required"


def test_unknown_tool_is_rejected(client):
    assert client.get("/tools/calculator", params={"query": "1 + 1"}).status_code == 422


def test_tool_route_returns_404_when_provider_down(client, service, monkeypatch):
    async def no_candidates(query, k, metric=None):
        return []

    monkeypatch.setattr(service.retriever, "retrieve", no_candidates)

    response = client.get("/tools/search_movies", params={"query": "anything"})

    assert response.status_code == 404


def test_tool_route_handles_internal_error(client, service, monkeypatch):
    async def failing_dispatch(*args, **kwargs):  # noqa: ANN002, ANN003
        raise RuntimeError("service down")

    monkeypatch.setattr(service.dispatcher.router, "dispatch", failing_dispatch)

    response = client.get("/tools/search_movies", params={"query": "comedy"})
    assert response.status_code == 500
    payload = response.json()
    assert payload["error"] == "internal_error"
    assert payload["message"] == "Something unexpected happened. Please try again later."


def test_request_id_header_propagated(client):
    response = client.get("/health", headers={"X-Request-ID": "test-req-123"})
    assert response.headers.get("X-Request-ID") == "test-req-123"


def test_tool_listing_describes_each_tool(client):
    response = client.get("/tools")

    assert response.status_code == 200
    assert response.json() == {
        "search_movies": "Free-text semantic movie search.",
        "search_by_genre": "Search by genre using the genre synonym phrases.",
        "search_by_mood": "Search by mood using the mood synonym phrases.",
        "find_similar_movies": "Find movies similar to a described or named movie.",
    }


@pytest.mark.parametrize("metric", ["cosine", "euclidean", "manhattan", "dot"])
def test_similar_route_accepts_metric(client, metric):
    response = client.get("/tools/find_similar_movies", params={"title": "Starlight Voyage", "metric": metric, "k": 3})

    assert response.status_code == 200
    payload = response.json()
    assert payload["metric"] == metric
    assert len(payload["results"]) == 3
    assert 12 not in [movie["id"] for movie in payload["results"]]


def test_unknown_metric_is_rejected(client):
    response = client.get("/tools/search_movies", params={"query": "space", "metric": "hamming"})

    assert response.status_code == 422
