"""HTML cleaning utility for job descriptions."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup


def clean_html(raw_html: str | None) -> str:
    """Strip HTML tags and normalize whitespace from a job description."""
    if not raw_html:
        return ""
    if "<" not in raw_html and "&" not in raw_html:
        return re.sub(r"\s+", " ", raw_html).strip()

    soup = BeautifulSoup(raw_html, "html.parser")

    # Remove script and style elements
    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator=" ")

    # Normalize whitespace
    return re.sub(r"\s+", " ", text).strip()
