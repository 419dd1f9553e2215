import json
import logging
import os
import re
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .database import Base, SessionLocal, engine
from .models import Report
from .schemas import (
    MAX_DESCRIPTION_CHARS,
    MAX_TAGS,
    MAX_TITLE_CHARS,
    AnalysisRequest,
    FullAnalysis,
    ReportOut,
)
from .scraper import ScrapeError, VideoMetadata, fetch_video_metadata
from .seo import analyze as analyze_metadata, score_label

TEMPLATES_DIR = str(Path(__file__).resolve().parent / "templates")

# --- Rate limiting (only the endpoint that fetches from YouTube) ---
RATE_LIMIT_PER_IP = os.getenv("RATE_LIMIT_PER_IP", "10/hour")

limiter = Limiter(key_func=get_remote_address)


def _url_rate_limit() -> str:
    return RATE_LIMIT_PER_IP


def _split_tags(raw: str) -> List[str]:
    """Split a comma or newline separated tag field."""
    return [tag.strip() for tag in re.split(r"[,\n]", raw) if tag.strip()]


def _fetched_request(metadata: VideoMetadata) -> AnalysisRequest:
    """Trim fetched metadata to the limits the form and JSON inputs enforce."""
    return AnalysisRequest(
        title=metadata.title.strip()[:MAX_TITLE_CHARS],
        description=metadata.description.strip()[:MAX_DESCRIPTION_CHARS],
        tags=metadata.tags[:MAX_TAGS],
    )


def _wants_json(request: Request) -> bool:
    return bool(request.headers.get("HX-Request")) or request.url.path.startswith("/api/")


async def _save_report(
    title: str,
    description: str,
    tags: List[str],
    analysis: FullAnalysis,
    source_url: Optional[str] = None,
) -> str:
    report_id = str(uuid.uuid4())
    async with SessionLocal() as session:
        report = Report(
            id=report_id,
            source_url=source_url,
            title=title,
            description=description,
            tags=json.dumps(tags),
            overall_score=analysis.overall_score,
            result=analysis.model_dump_json(),
        )
        session.add(report)
        await session.commit()
    return report_id


async def _load_report(report_id: str) -> Report:
    async with SessionLocal() as session:
        report = await session.get(Report, report_id)

    if not report:
        raise HTTPException(status_code=404, detail="Report not found.")
    return report


def _redirect_to_report(request: Request, report_id: str) -> Response:
    # For HTMX requests: 204 + HX-Redirect causes the browser to navigate.
    # For standard form POST: redirect normally.
    redirect_url = f"/report/{report_id}"
    if request.headers.get("HX-Request"):
        return Response(status_code=204, headers={"HX-Redirect": redirect_url})
    return RedirectResponse(url=redirect_url, status_code=303)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield


app = FastAPI(title="TubeSEO", lifespan=lifespan)
app.state.limiter = limiter
templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.globals["score_label"] = score_label


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    detail = "Rate limit exceeded. Please slow down and try again later."
    if _wants_json(request):
        return Response(
            content=json.dumps({"detail": detail}),
            status_code=429,
            media_type="application/json",
        )
    return templates.TemplateResponse(
        request,
        "error.html",
        {"detail": detail, "status_code": 429},
        status_code=429,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Return JSON errors for HTMX and API requests, HTML for others."""
    if _wants_json(request):
        return Response(
            content=json.dumps({"detail": exc.detail}),
            status_code=exc.status_code,
            media_type="application/json",
        )
    return templates.TemplateResponse(
        request,
        "error.html",
        {"detail": exc.detail, "status_code": exc.status_code},
        status_code=exc.status_code,
    )


# ---------------------------------------------------------------------------
# HTML routes
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(request, "index.html")


@app.post("/analyze")
async def analyze(
    request: Request,
    title: str = Form(...),
    description: str = Form(""),
    tags: str = Form(""),
):
    title = title.strip()
    description = description.strip()

    # --- Validate inputs ---
    if not title:
        raise HTTPException(status_code=400, detail="A video title is required.")
    if len(title) > MAX_TITLE_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"Title must be at most {MAX_TITLE_CHARS} characters.",
        )
    if len(description) > MAX_DESCRIPTION_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"Description must be at most {MAX_DESCRIPTION_CHARS} characters.",
        )

    tag_list = _split_tags(tags)
    result = analyze_metadata(title, description, tag_list)
    logger.info("Scored %r at %d", title, result.overall_score)

    report_id = await _save_report(title, description, tag_list, result)
    return _redirect_to_report(request, report_id)


@app.post("/analyze/url")
@limiter.limit(_url_rate_limit)
async def analyze_url(request: Request, video_url: str = Form(...)):
    try:
        metadata = await fetch_video_metadata(video_url)
    except ScrapeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Unexpected error while fetching video metadata")
        raise HTTPException(
            status_code=502,
            detail="Fetching the video failed due to an upstream error. Please try again.",
        ) from exc

    fetched = _fetched_request(metadata)
    result = analyze_metadata(fetched.title, fetched.description, fetched.tags)
    logger.info("Scored %s at %d", metadata.url, result.overall_score)

    report_id = await _save_report(
        fetched.title, fetched.description, fetched.tags, result, source_url=metadata.url
    )
    return _redirect_to_report(request, report_id)


@app.get("/report/{report_id}", response_class=HTMLResponse)
async def report(request: Request, report_id: str):
    saved = await _load_report(report_id)

    return templates.TemplateResponse(
        request,
        "result.html",
        {
            "report": saved,
            "tags": json.loads(saved.tags),
            "analysis": FullAnalysis.model_validate_json(saved.result),
        },
    )


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------


@app.post("/api/analyze", response_model=FullAnalysis)
async def api_analyze(payload: AnalysisRequest):
    return analyze_metadata(payload.title, payload.description, payload.tags)


@app.get("/api/reports/{report_id}", response_model=ReportOut)
async def api_report(report_id: str):
    saved = await _load_report(report_id)
    return ReportOut(
        id=saved.id,
        created_at=saved.created_at,
        source_url=saved.source_url,
        title=saved.title,
        description=saved.description,
        tags=json.loads(saved.tags),
        analysis=FullAnalysis.model_validate_json(saved.result),
    )
