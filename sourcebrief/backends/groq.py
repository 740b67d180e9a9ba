"""Groq brief backend — OpenAI-compatible chat completions API."""

from __future__ import annotations

import logging

import httpx

from sourcebrief.config import Settings, settings
from sourcebrief.models.types import utc_now_iso
from sourcebrief.orchestrator.errors import (
    EmptyModelOutputError,
    RateLimitedError,
    TransportError,
    UpstreamAPIError,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert research analyst specializing in synthesizing information \
from multiple sources.

Your task is to:
1. Analyze the provided URLs and their content
2. Extract key information and themes
3. Identify areas of agreement and conflict across sources
4. Highlight claims requiring verification
5. Return a structured JSON brief

Requirements:
- Be objective and neutral in your analysis
- Cite specific sources with direct quotes (snippets)
- Flag conflicting claims clearly with both sides
- Suggest items for fact-checking in the verification list
- Rate credibility of key points (low/medium/high)
- Use ISO 8601 format for timestamps
- Generate UUID v4 for all IDs

CRITICAL: Return ONLY valid JSON. No markdown, no code blocks, no explanations. \
Just the JSON object.\
"""

# Doubled braces are literal; {urls} and {created_at} are filled in.
USER_PROMPT_TEMPLATE = """\
Analyze these research URLs and generate a comprehensive brief:

URLs:
{urls}

Respond with ONLY a JSON object matching this exact structure. Do not include \
markdown formatting, code blocks, or any text outside the JSON:

{{
  "id": "uuid-v4-string",
  "title": "Brief title describing the topic",
  "summary": "2-3 paragraph summary synthesizing all sources. Include main themes, consensus points, and areas of disagreement.",
  "key_points": [
    {{
      "id": "uuid-v4-string",
      "text": "A specific finding or insight from the research",
      "sources": [
        {{
          "url": "https://example.com/source",
          "snippet": "Direct quote from the source supporting this point"
        }}
      ],
      "credibility": "high"
    }}
  ],
  "conflicts": [
    {{
      "id": "uuid-v4-string",
      "claimA": {{
        "text": "First claim or perspective",
        "url": "https://source-a.com"
      }},
      "claimB": {{
        "text": "Conflicting claim or perspective",
        "url": "https://source-b.com"
      }}
    }}
  ],
  "what_to_verify": [
    {{
      "id": "uuid-v4-string",
      "text": "Claim or statistic that requires verification",
      "source": "https://source.com",
      "checked": false
    }}
  ],
  "sources": [
    {{
      "url": "https://example.com",
      "title": "Source Title",
      "snippet": "Brief summary of what this source covers"
    }}
  ],
  "created_at": "{created_at}"
}}

Rules:
- Include 3-5 key points minimum
- Include at least 1 conflict if sources disagree
- Include 2-4 verification items
- Every key point must have at least one source with snippet
- Credibility must be "low", "medium", or "high"
- All IDs must be unique UUID v4 format
- created_at must be ISO 8601 format\
"""


def build_system_prompt() -> str:
    return SYSTEM_PROMPT


def build_user_prompt(urls: list[str], created_at: str | None = None) -> str:
    """Embed the URLs and the target JSON shape into the user message."""
    return USER_PROMPT_TEMPLATE.format(
        urls="\n".join(urls),
        created_at=created_at or utc_now_iso(),
    )


class GroqBackend:
    """Brief backend using Groq's OpenAI-compatible chat completions API."""

    name: str = "Groq"

    def __init__(
        self,
        api_key: str | None = None,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = config or settings
        self.api_key = api_key or config.groq_api_key
        self.api_url = config.llm_api_url
        self.model = config.llm_model
        self.temperature = config.llm_temperature
        self.max_tokens = config.llm_max_tokens
        self.timeout = config.llm_timeout
        self._transport = transport

    def build_payload(self, urls: list[str]) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": build_system_prompt()},
                {"role": "user", "content": build_user_prompt(urls)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

    async def draft(self, urls: list[str]) -> str:
        """Ask the model for a brief and return the first choice's raw text.

        Makes exactly one request; retrying is left to the caller.
        """
        payload = self.build_payload(urls)
        logger.info("Requesting brief from %s (%s) for %d URLs", self.name, self.model, len(urls))

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.TimeoutException as exc:
            logger.error("%s request timed out after %.0fs", self.name, self.timeout)
            raise TransportError(f"Timed out waiting for {self.name} API") from exc
        except httpx.HTTPError as exc:
            logger.error("%s request failed: %s", self.name, exc)
            raise TransportError(f"Failed to connect to {self.name} API") from exc

        if response.status_code == 429:
            logger.warning("%s rate limit hit", self.name)
            raise RateLimitedError(
                "Too many requests. Please try again later.",
                upstream_status=response.status_code,
            )
        if not response.is_success:
            message = self._error_message(response)
            logger.error("%s API error %d: %s", self.name, response.status_code, message)
            raise UpstreamAPIError(message, upstream_status=response.status_code)

        return self._extract_content(response)

    def _error_message(self, response: httpx.Response) -> str:
        """Pull the provider's error message out of an error body, if any."""
        try:
            data = response.json()
        except ValueError:
            return f"Unknown API error (HTTP {response.status_code})"
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return f"Unknown API error (HTTP {response.status_code})"

    def _extract_content(self, response: httpx.Response) -> str:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise EmptyModelOutputError(f"{self.name} response contained no completion") from exc
        if not isinstance(content, str) or not content.strip():
            raise EmptyModelOutputError(f"{self.name} response contained no completion")
        return content
