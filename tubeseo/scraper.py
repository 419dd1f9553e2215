import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse, parse_qs

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 15.0  # seconds

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
_SHORT_HOSTS = {"youtu.be", "www.youtu.be"}
_PATH_PREFIXES = ("/shorts/", "/embed/", "/live/")

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")

# Fields of the player JSON embedded in every watch page
_JSON_STRING = r'"(?:[^"\\]|\\.)*"'
_DESCRIPTION_RE = re.compile(r'"shortDescription":\s*(' + _JSON_STRING + r")")
_KEYWORDS_RE = re.compile(
    r'"keywords":\s*(\[(?:' + _JSON_STRING + r"(?:,\s*" + _JSON_STRING + r")*)?\])"
)


class ScrapeError(Exception):
    """Raised when video metadata cannot be fetched or parsed."""


@dataclass
class VideoMetadata:
    video_id: str
    url: str
    title: str
    description: str = ""
    tags: List[str] = field(default_factory=list)


def _extract_video_id(url: str) -> Optional[str]:
    parsed = urlparse(url)
    host = parsed.netloc.lower()

    if host in _SHORT_HOSTS:
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host in _YOUTUBE_HOSTS:
        if parsed.path == "/watch":
            candidate = parse_qs(parsed.query).get("v", [""])[0]
        else:
            candidate = ""
            for prefix in _PATH_PREFIXES:
                if parsed.path.startswith(prefix):
                    candidate = parsed.path[len(prefix):].split("/")[0]
                    break
    else:
        return None

    return candidate if _VIDEO_ID_RE.match(candidate) else None


def _validate_url(url: str) -> str:
    """Validate a YouTube video URL and return its canonical watch URL."""
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ScrapeError("Invalid URL. Please provide a valid HTTP or HTTPS URL.")

    video_id = _extract_video_id(url)
    if not video_id:
        raise ScrapeError("That does not look like a YouTube video URL.")
    return WATCH_URL.format(video_id=video_id)


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip()
    return ""


def _extract_metadata_from_html(html: str, url: str) -> VideoMetadata:
    """Pull title, description and tags out of a watch page."""
    soup = BeautifulSoup(html, "lxml")

    title = _meta_content(soup, property="og:title") or _meta_content(soup, name="title")
    if not title and soup.title and soup.title.string:
        title = re.sub(r"\s*-\s*YouTube\s*$", "", soup.title.string.strip())
    if not title:
        raise ScrapeError("Could not find a video title on that page.")

    # The meta description is truncated; the player JSON carries the full text.
    description = ""
    match = _DESCRIPTION_RE.search(html)
    if match:
        try:
            description = json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.warning("Could not decode embedded description for %s", url)
    if not description:
        description = _meta_content(soup, property="og:description")

    tags: List[str] = []
    match = _KEYWORDS_RE.search(html)
    if match:
        try:
            tags = json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.warning("Could not decode embedded keywords for %s", url)
    if not tags:
        keywords = _meta_content(soup, name="keywords")
        tags = [kw.strip() for kw in keywords.split(",")] if keywords else []

    video_id = parse_qs(urlparse(url).query).get("v", [""])[0]
    return VideoMetadata(
        video_id=video_id,
        url=url,
        title=title,
        description=description,
        tags=[tag for tag in tags if tag],
    )


async def _fetch_page(url: str) -> str:
    async with httpx.AsyncClient(
        timeout=FETCH_TIMEOUT,
        follow_redirects=True,
        headers={"User-Agent": _USER_AGENT, "Accept-Language": "en-US,en;q=0.9"},
    ) as client:
        response = await client.get(url)
        response.raise_for_status()

    return response.text


async def fetch_video_metadata(url: str) -> VideoMetadata:
    """Fetch a YouTube video page and extract the metadata worth scoring.

    Raises ``ScrapeError`` for URLs that are not YouTube videos and for pages
    that cannot be fetched or do not carry a title.
    """
    url = _validate_url(url)

    try:
        html = await _fetch_page(url)
    except httpx.HTTPError as exc:
        logger.warning("Fetch failed for %s: %s", url, exc)
        raise ScrapeError(
            "Could not fetch that video. Please paste its details manually instead."
        ) from exc

    metadata = _extract_metadata_from_html(html, url)
    logger.info(
        "Fetched metadata for %s (%d description chars, %d tags)",
        url, len(metadata.description), len(metadata.tags),
    )
    return metadata
