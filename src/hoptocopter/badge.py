import logging
from dataclasses import dataclass

import requests

from hoptocopter.coverage import status_color

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/svg+xml"


class BadgeServiceError(Exception):
    """The badge service could not be reached or answered with an error."""


@dataclass(frozen=True)
class Badge:
    content: bytes
    content_type: str


def badge_url(shield_url: str, pct: int) -> str:
    # "%25" is an escaped percent sign in the shields path syntax
    return f"{shield_url.rstrip('/')}/coverage-{pct}%25-{status_color(pct)}.svg"


def nan_badge_url(shield_url: str) -> str:
    return f"{shield_url.rstrip('/')}/coverage-NaN-red.svg"


def fetch_badge(url: str, timeout: float = 5.0) -> Badge:
    """Download a rendered badge. No retries; every failure is a BadgeServiceError."""
    try:
        response = requests.get(url, timeout=timeout)
    except (requests.RequestException, ValueError) as e:
        raise BadgeServiceError(f"error loading SVG from shield: {e}") from e

    if not response.ok:
        raise BadgeServiceError(
            f"shield server answered {response.status_code} for {url}"
        )
    content_type = response.headers.get("Content-Type", DEFAULT_CONTENT_TYPE)
    logger.debug("Fetched %d byte badge from %s", len(response.content), url)
    return Badge(content=response.content, content_type=content_type)
