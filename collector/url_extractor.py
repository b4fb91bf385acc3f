"""URL extraction from free text."""

import re

_URL_PATTERN = re.compile(
    r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)",
    re.IGNORECASE,
)


def extract_urls(text: str) -> list[str]:
    """Return unique http(s) URLs in order of first appearance.

    No normalization is applied, so trailing characters that match the path
    class (e.g. a final ".") stay part of the URL.
    """
    if not text:
        return []
    return list(dict.fromkeys(_URL_PATTERN.findall(text)))


def contains_url(text: str) -> bool:
    """Check if text contains at least one URL."""
    return len(extract_urls(text)) > 0
