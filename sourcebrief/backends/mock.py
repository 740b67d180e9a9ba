"""Offline mock backend, used when no LLM API key is configured."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlsplit
from uuid import uuid4

from sourcebrief.models.types import utc_now_iso

logger = logging.getLogger(__name__)

MOCK_SUMMARY = (
    "This research brief provides a comprehensive analysis of the submitted URLs. "
    "The analysis identifies key themes, conflicting viewpoints, and areas requiring "
    "further verification. Based on the extracted content, several important claims "
    "and perspectives have been identified across the sources."
)

# (text, snippet, credibility)
MOCK_KEY_POINTS = [
    (
        "The primary argument suggests a significant trend in recent market movements",
        "Recent market analysis shows significant changes across multiple sectors...",
        "high",
    ),
    (
        "Secondary sources indicate emerging regulatory frameworks are being developed",
        "Regulatory bodies are working on new guidelines to address market concerns...",
        "medium",
    ),
    (
        "Additional context points to industry-specific challenges",
        "The industry faces several challenges including infrastructure limitations...",
        "medium",
    ),
]

MOCK_VERIFY_ITEMS = [
    "Confirm recent financial metrics from official sources",
    "Verify regulatory body statements about new frameworks",
]


def _new_id() -> str:
    return str(uuid4())


def _host(url: str) -> str:
    return urlsplit(url).hostname or url


def build_mock_brief(urls: list[str], now: str | None = None) -> dict[str, Any]:
    """Synthesize a schema-valid brief for *urls* without any network call.

    Content is fixed; ids are fresh on every call. Key points and checklist
    items cite the input URLs in turn.
    """
    if not urls:
        raise ValueError("At least one URL is required")

    def cite(i: int) -> str:
        return urls[i % len(urls)]

    return {
        "id": _new_id(),
        "title": "Research Brief: Topic Analysis",
        "summary": MOCK_SUMMARY,
        "key_points": [
            {
                "id": _new_id(),
                "text": text,
                "sources": [{"url": cite(i), "snippet": snippet}],
                "credibility": credibility,
            }
            for i, (text, snippet, credibility) in enumerate(MOCK_KEY_POINTS)
        ],
        "conflicts": [
            {
                "id": _new_id(),
                "claimA": {"text": "Market growth is accelerating rapidly", "url": cite(0)},
                "claimB": {
                    "text": "Market expansion has plateaued in recent quarters",
                    "url": cite(1),
                },
            }
        ],
        "what_to_verify": [
            *(
                {"id": _new_id(), "text": text, "source": cite(i), "checked": False}
                for i, text in enumerate(MOCK_VERIFY_ITEMS)
            ),
            {
                "id": _new_id(),
                "text": "Research industry-specific infrastructure requirements",
                "checked": False,
            },
        ],
        "sources": [
            {
                "url": url,
                "title": f"Source: {_host(url)}",
                "snippet": "Content summary from this source would appear here...",
            }
            for url in urls
        ],
        "created_at": now or utc_now_iso(),
    }


class MockBackend:
    """Deterministic stand-in for the LLM. Never touches the network."""

    name: str = "Mock"

    async def draft(self, urls: list[str]) -> str:
        logger.info("Generating mock brief for %d URLs", len(urls))
        return json.dumps(build_mock_brief(urls))
