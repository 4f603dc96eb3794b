"""Question detection from a LeetCode problem page."""

from __future__ import annotations

import html
import logging
import re
from typing import Any

import httpx

from lcassist.config import DEFAULT_QUESTION_URL_PATTERN, DEFAULT_REQUEST_TIMEOUT_S
from lcassist.models import PageInfo, Tab

WRONG_SITE_REASON = "Open a LeetCode question to use the assistant."
NO_NUMBER_REASON = "Couldn't locate the question number. Expand the description and try again."
UNREADABLE_REASON = "Unable to read the page"

_TITLE_ELEMENT_RE = re.compile(
    r"<(?P<tag>[a-zA-Z0-9]+)\b[^>]*\bdata-cy=[\"']question-title[\"'][^>]*>(?P<body>.*?)</(?P=tag)\s*>",
    re.IGNORECASE | re.DOTALL,
)
_H1_RE = re.compile(r"<h1\b[^>]*>(?P<body>.*?)</h1\s*>", re.IGNORECASE | re.DOTALL)
_TITLE_RE = re.compile(r"<title\b[^>]*>(?P<body>.*?)</title\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_LEADING_NUMBER_RE = re.compile(r"^(\d+)")
_FRONTEND_ID_RE = re.compile(r'"questionFrontendId"\s*:\s*"(\d+)"')

logger = logging.getLogger(__name__)


def is_question_url(url: Any, pattern: str = DEFAULT_QUESTION_URL_PATTERN) -> bool:
    return isinstance(url, str) and re.search(pattern, url, re.IGNORECASE) is not None


def _element_text(fragment: str) -> str:
    text = html.unescape(_TAG_RE.sub("", fragment))
    return " ".join(text.split())


def grab_title(page: str) -> str:
    """Title from the question-title element, then the first h1, then the document title."""
    for regex in (_TITLE_ELEMENT_RE, _H1_RE):
        match = regex.search(page)
        if match:
            return _element_text(match.group("body"))
    match = _TITLE_RE.search(page)
    return _element_text(match.group("body")) if match else ""


def parse_question_page(page: str) -> PageInfo:
    title = grab_title(page)
    number: str | None = None

    number_match = _LEADING_NUMBER_RE.match(title)
    if number_match:
        number = number_match.group(1)
    else:
        frontend_match = _FRONTEND_ID_RE.search(page)
        if frontend_match:
            number = frontend_match.group(1)

    return PageInfo(
        ok=bool(number),
        question_id=number,
        title=title or None,
        reason=None if number else NO_NUMBER_REASON,
    )


class HttpPageExtractor:
    """Fetch the tab's page and read the question number and title from its markup."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        url_pattern: str = DEFAULT_QUESTION_URL_PATTERN,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_S,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(follow_redirects=True, timeout=timeout)
        self._url_pattern = url_pattern

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def extract(self, tab: Tab) -> PageInfo:
        if not is_question_url(tab.url, self._url_pattern):
            return PageInfo(ok=False, reason=WRONG_SITE_REASON)
        headers = {
            "User-Agent": "lcassist/0.1",
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.1",
        }
        try:
            response = await self._client.get(tab.url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Page fetch failed for %s: %s", tab.url, exc)
            return PageInfo(ok=False, reason=UNREADABLE_REASON)
        return parse_question_page(response.text)
