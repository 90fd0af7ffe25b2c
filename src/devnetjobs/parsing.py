from __future__ import annotations

import html as htmllib
import logging
import re
from typing import Callable, List, Optional, Tuple

from selectolax.lexbor import LexborHTMLParser

from .models import (
    DEFAULT_DEADLINE,
    DEFAULT_LOCATION,
    DEFAULT_ORGANIZATION,
    DEFAULT_SECTORS,
    DEFAULT_TITLE,
    Job,
    PageSnapshot,
)


logger = logging.getLogger(__name__)

# Heading markers of the site's own error / placeholder pages.
INVALID_TITLE_MARKERS = ("Error", "Untitled")

# IIS / ASP.NET failure or access-denial headings rendered inside the normal
# job layout. Matched against title and organization only.
SOFT_ERROR_MARKERS = (
    "403 - forbidden",
    "access is denied",
    "server error in '/' application",
    "runtime error",
    "500 - internal server error",
    "503 service unavailable",
    "the resource cannot be found",
)

# Full error-page signatures; only these are looked for in the description,
# whose free text may mention errors legitimately.
SOFT_ERROR_BODY_SIGNATURES = (
    "server error in '/' application",
    "403 - forbidden: access is denied",
    "500 - internal server error",
    "http error 503. the service is unavailable",
)

# Boilerplate that follows the job body on every detail page.
DESCRIPTION_STOP_MARKERS = ("View Similar Jobs:", "Subscribe to Value Membership")

_SECTORS_RE = re.compile(
    r"Relevant Sectors\s*</p>\s*<p[^>]*>([^<]+)</p>(?:\s*<p[^>]*>([^<]+)</p>)?",
    re.I,
)

# (body_text, title) -> description
DescriptionExtractor = Callable[[str, str], str]


def _clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def _first_text(tree: LexborHTMLParser, selector: str) -> str:
    node = tree.css_first(selector)
    if node is None:
        return ""
    return _clean_text(node.text(separator=" "))


def _labelled_paragraph(tree: LexborHTMLParser, label: str) -> Optional[str]:
    """Text of the first <p> containing `label`, with the label removed."""
    for node in tree.css("p"):
        text = _clean_text(node.text(separator=" "))
        if label in text:
            return text.replace(label, "", 1).strip()
    return None


def is_valid_job_page(snapshot: Optional[PageSnapshot]) -> bool:
    """A real job page has a non-empty h1 that is not an error / placeholder heading."""
    if snapshot is None or not snapshot.html:
        return False
    try:
        title = _first_text(LexborHTMLParser(snapshot.html), "h1")
    except Exception:
        return False
    if not title:
        return False
    return not any(m in title for m in INVALID_TITLE_MARKERS)


def is_soft_error(title: str, organization: str = "", description: str = "") -> bool:
    heading = f"{title or ''} {organization or ''}".lower()
    if any(m in heading for m in SOFT_ERROR_MARKERS):
        return True
    body = (description or "").lower()
    return any(s in body for s in SOFT_ERROR_BODY_SIGNATURES)


def extract_sectors(html: str) -> Tuple[str, ...]:
    m = _SECTORS_RE.search(html or "")
    if not m:
        return ()
    sectors = []
    for raw in m.groups():
        value = _clean_text(htmllib.unescape(raw or ""))
        if value:
            sectors.append(value)
    return tuple(sectors)


def window_description(body_text: str, title: str) -> str:
    """Capture the lines between the title line and the trailing boilerplate.

    Capturing starts after the first line equal to the title; the first line
    containing one of DESCRIPTION_STOP_MARKERS ends it.
    """

    anchor = _clean_text(title)
    if not anchor:
        return ""

    captured: List[str] = []
    inside = False
    for line in (body_text or "").splitlines():
        trimmed = line.strip()
        if _clean_text(trimmed) == anchor:
            inside = True
            continue
        if any(m in trimmed for m in DESCRIPTION_STOP_MARKERS):
            break
        if inside and trimmed:
            captured.append(trimmed)
    return "\n".join(captured).strip()


def extract_job(
    snapshot: PageSnapshot,
    job_id: str,
    url: str,
    *,
    describe: DescriptionExtractor = window_description,
) -> Optional[Job]:
    """Build a Job from a detail page, or None for soft-error pages.

    Each field is extracted on its own; a failure only defaults that field.
    """

    tree = LexborHTMLParser(snapshot.html or "")

    def attempt(name: str, fn: Callable[[], Optional[str]], default: str) -> str:
        try:
            value = fn()
        except Exception as e:
            logger.debug("job %s: %s extraction failed: %s", job_id, name, e)
            return default
        return (value or "").strip() or default

    title = attempt("title", lambda: _first_text(tree, "h1"), DEFAULT_TITLE)
    organization = attempt("organization", lambda: _first_text(tree, "h5"), DEFAULT_ORGANIZATION)
    location = attempt("location", lambda: _labelled_paragraph(tree, "Location:"), DEFAULT_LOCATION)
    deadline = attempt("deadline", lambda: _labelled_paragraph(tree, "Apply by:"), DEFAULT_DEADLINE)

    try:
        sectors = extract_sectors(snapshot.html)
    except Exception:
        sectors = ()

    try:
        description = describe(snapshot.text, title)
    except Exception as e:
        logger.debug("job %s: description extraction failed: %s", job_id, e)
        description = ""

    if is_soft_error(title, organization, description):
        logger.warning("job %s: soft error page (%s)", job_id, title[:80])
        return None

    return Job(
        external_id=str(job_id),
        title=title,
        organization=organization,
        location=location,
        deadline=deadline,
        sectors=sectors or DEFAULT_SECTORS,
        description=(description or "").strip(),
        original_url=url,
    )
