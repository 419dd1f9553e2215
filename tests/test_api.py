"""
Integration tests for the HTTP surface.

Reports are written to a throwaway SQLite database set up in conftest.py.
"""
from tubeseo import scraper
from tubeseo.main import limiter
from tubeseo.schemas import MAX_DESCRIPTION_CHARS, MAX_TITLE_CHARS
from tubeseo.scraper import VideoMetadata
from tubeseo.seo import analyze


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert 'hx-post="/analyze"' in response.text


def test_api_analyze(client, optimised_video):
    response = client.post("/api/analyze", json=optimised_video)
    assert response.status_code == 200
    data = response.json()
    assert data["overall_score"] == 100
    assert data["label"] == "Good"
    assert data["recommendations"] == []
    assert [check["label"] for check in data["title"]["checks"]] == [
        "Length", "Keywords", "Power Words"
    ]


def test_api_analyze_drops_blank_tags(client):
    response = client.post(
        "/api/analyze", json={"title": "A", "description": "", "tags": ["  ", ""]}
    )
    assert response.status_code == 200
    tag_count = response.json()["tags"]["checks"][0]
    assert tag_count["message"] == "Only 0 tags, add more (8-15 optimal)"


def test_api_analyze_requires_title(client):
    response = client.post("/api/analyze", json={"title": "", "tags": []})
    assert response.status_code == 422


def test_form_analyze_persists_report(client):
    response = client.post(
        "/analyze",
        data={"title": "How to bake bread", "description": "", "tags": "bread, baking\nsourdough"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    location = response.headers["location"]
    assert location.startswith("/report/")

    page = client.get(location)
    assert page.status_code == 200
    assert "How to bake bread" in page.text
    assert "Recommendations" in page.text

    report_id = location.rsplit("/", 1)[1]
    data = client.get(f"/api/reports/{report_id}").json()
    assert data["tags"] == ["bread", "baking", "sourdough"]
    assert data["source_url"] is None
    expected = analyze("How to bake bread", "", ["bread", "baking", "sourdough"])
    assert data["analysis"] == expected.model_dump()


def test_form_analyze_htmx_redirect(client):
    response = client.post(
        "/analyze",
        data={"title": "Quick pasta", "tags": "pasta"},
        headers={"HX-Request": "true"},
    )
    assert response.status_code == 204
    assert response.headers["HX-Redirect"].startswith("/report/")


def test_form_analyze_rejects_blank_title(client):
    response = client.post("/analyze", data={"title": "   "})
    assert response.status_code == 400
    assert "title is required" in response.text


def test_missing_report(client):
    page = client.get("/report/does-not-exist")
    assert page.status_code == 404
    assert page.headers["content-type"].startswith("text/html")
    assert "Report not found." in page.text

    response = client.get("/api/reports/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"detail": "Report not found."}


def test_analyze_url(client, monkeypatch, optimised_video):
    async def fake_fetch(url):
        return VideoMetadata(
            video_id="dQw4w9WgXcQ",
            url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            **optimised_video,
        )

    monkeypatch.setattr("tubeseo.main.fetch_video_metadata", fake_fetch)
    response = client.post(
        "/analyze/url",
        data={"video_url": "https://youtu.be/dQw4w9WgXcQ"},
        follow_redirects=False,
    )
    assert response.status_code == 303

    report_id = response.headers["location"].rsplit("/", 1)[1]
    data = client.get(f"/api/reports/{report_id}").json()
    assert data["source_url"] == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    assert data["analysis"]["overall_score"] == 100


def test_analyze_url_rejects_non_youtube(client, monkeypatch):
    async def unexpected_fetch(url):
        raise AssertionError("should not fetch")

    monkeypatch.setattr(scraper, "_fetch_page", unexpected_fetch)
    response = client.post(
        "/analyze/url",
        data={"video_url": "https://example.com/watch?v=dQw4w9WgXcQ"},
        headers={"HX-Request": "true"},
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "That does not look like a YouTube video URL."


def test_analyze_url_upstream_failure(client, monkeypatch):
    async def broken_fetch(url):
        raise RuntimeError("unexpected markup")

    monkeypatch.setattr("tubeseo.main.fetch_video_metadata", broken_fetch)
    response = client.post(
        "/analyze/url",
        data={"video_url": "https://youtu.be/dQw4w9WgXcQ"},
        headers={"HX-Request": "true"},
    )
    assert response.status_code == 502
    assert response.json()["detail"] == (
        "Fetching the video failed due to an upstream error. Please try again."
    )


def test_analyze_url_rate_limited(client, monkeypatch, optimised_video):
    async def fake_fetch(url):
        return VideoMetadata(
            video_id="dQw4w9WgXcQ",
            url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            **optimised_video,
        )

    monkeypatch.setattr("tubeseo.main.fetch_video_metadata", fake_fetch)
    monkeypatch.setattr("tubeseo.main.RATE_LIMIT_PER_IP", "2/minute")
    limiter.reset()
    try:
        form = {"video_url": "https://youtu.be/dQw4w9WgXcQ"}
        for _ in range(2):
            response = client.post("/analyze/url", data=form, follow_redirects=False)
            assert response.status_code == 303

        response = client.post("/analyze/url", data=form, headers={"HX-Request": "true"})
        assert response.status_code == 429
        assert response.json() == {
            "detail": "Rate limit exceeded. Please slow down and try again later."
        }

        response = client.post("/analyze/url", data=form, follow_redirects=False)
        assert response.status_code == 429
        assert response.headers["content-type"].startswith("text/html")
        assert "Rate limit exceeded" in response.text
    finally:
        limiter.reset()


def test_analyze_url_applies_input_limits(client, monkeypatch):
    async def fake_fetch(url):
        return VideoMetadata(
            video_id="dQw4w9WgXcQ",
            url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            title="  " + "t" * (MAX_TITLE_CHARS + 50),
            description="d" * (MAX_DESCRIPTION_CHARS + 10),
            tags=[" cooking ", "", "   ", "quick dinner"],
        )

    monkeypatch.setattr("tubeseo.main.fetch_video_metadata", fake_fetch)
    response = client.post(
        "/analyze/url",
        data={"video_url": "https://youtu.be/dQw4w9WgXcQ"},
        follow_redirects=False,
    )
    assert response.status_code == 303

    report_id = response.headers["location"].rsplit("/", 1)[1]
    data = client.get(f"/api/reports/{report_id}").json()
    assert len(data["title"]) == MAX_TITLE_CHARS
    assert len(data["description"]) == MAX_DESCRIPTION_CHARS
    assert data["tags"] == ["cooking", "quick dinner"]
