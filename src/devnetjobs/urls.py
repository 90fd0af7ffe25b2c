from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qsl, urlparse


DETAIL_PATH = "JobDescription.aspx"

_JOB_ID_RE = re.compile(r"Job_Id=(\d+)", re.I)


def job_url(base_url: str, job_id: int | str) -> str:
    return f"{base_url.rstrip('/')}/{DETAIL_PATH}?Job_Id={job_id}"


def parse_job_id(url: str) -> Optional[int]:
    """Return the numeric Job_Id of a detail page address, if any.

    The query string is checked first; a plain regex search covers
    addresses where the id ends up in a fragment or a postback target.
    """

    if not url:
        return None

    for k, v in parse_qsl(urlparse(url.strip()).query, keep_blank_values=True):
        if k.lower() == "job_id" and v.isdigit():
            return int(v)

    m = _JOB_ID_RE.search(url)
    if m:
        return int(m.group(1))
    return None
