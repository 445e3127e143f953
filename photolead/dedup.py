"""Deduplication of candidate leads gathered across several searches."""

import logging
from typing import Iterable, Optional
from urllib.parse import urlparse

from .models import CandidateLead

logger = logging.getLogger(__name__)


def dedupe_by_external_id(candidates: Iterable[CandidateLead]) -> list[CandidateLead]:
    """
    Drop repeated candidates, keeping the first entry seen for each id.

    Order of first occurrence is preserved, so running this twice gives the
    same result as running it once.

    Args:
        candidates: Candidates in the order they were gathered

    Returns:
        Unique candidates keyed by external id
    """
    by_id: dict[str, CandidateLead] = {}
    total = 0

    for candidate in candidates:
        total += 1
        if candidate.external_id in by_id:
            logger.debug("Duplicate place skipped: %s", candidate.external_id)
            continue
        by_id[candidate.external_id] = candidate

    result = list(by_id.values())

    logger.info("Deduplicated %d candidates down to %d unique entries", total, len(result))

    return result


def exclude_known(
    candidates: Iterable[CandidateLead],
    known_external_ids: Iterable[str],
) -> list[CandidateLead]:
    """
    Remove candidates the user already has stored.

    Args:
        candidates: Candidates to filter
        known_external_ids: Place ids already persisted for the user

    Returns:
        Candidates whose id is not known, in input order
    """
    known = set(known_external_ids)
    return [c for c in candidates if c.external_id not in known]


def normalize_domain(url: Optional[str]) -> Optional[str]:
    """
    Extract and normalize domain from URL.

    Args:
        url: Full URL or domain string

    Returns:
        Normalized domain without www prefix, or None if invalid

    Examples:
        "https://www.example.com/page" -> "example.com"
        "rosewoodvenue.com" -> "rosewoodvenue.com"
        "not a url" -> None
    """
    if not url:
        return None

    url = url.strip()

    if url in ("https:", "http:", "https://", "http://"):
        return None

    try:
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"

        parsed = urlparse(url)
        domain = parsed.netloc.lower()

        if domain.startswith("www."):
            domain = domain[4:]

        if ":" in domain:
            domain = domain.split(":")[0]

        if not domain or "." not in domain or len(domain) < 4:
            return None

        if any(c in domain for c in [" ", "<", ">", '"', "'", ";"]):
            return None

        return domain

    except ValueError:
        return None
