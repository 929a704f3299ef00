import json
import logging
from typing import Any

import httpx

from smartfootball.config import Settings
from smartfootball.models import Fixture

logger = logging.getLogger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

SYSTEM_PROMPT = (
    "You are a professional football statistics analyst. Always respond with "
    "valid JSON only. No markdown, no explanation outside JSON."
)


class ModelServiceError(Exception):
    """The model call failed or returned something that is not a JSON object."""


def build_messages(fixture: Fixture) -> list[dict[str, str]]:
    """Chat messages asking for an expected-goals estimate plus match copy."""
    competition = fixture.competition_name or "Unknown competition"
    if fixture.competition_country:
        competition = f"{competition} ({fixture.competition_country})"
    match_date = fixture.kickoff_time.strftime("%A %d %B %Y")

    user_prompt = f"""Generate a complete JSON prediction for this match:
- Home team: {fixture.home_team}
- Away team: {fixture.away_team}
- League: {competition}
- Date: {match_date}

Return ONLY valid JSON with this exact structure:
{{
  "homeXG": <number 0.5-3.5>,
  "awayXG": <number 0.5-3.5>,
  "predictedWinner": "<home|draw|away>",
  "confidenceScore": <number 45-90>,
  "keyFacts": ["<fact>", "<fact>", "<fact>", "<fact>"],
  "analysis": "<400-500 word match analysis mentioning both teams by full name. Do not use gambling language; say 'our model predicts'.>",
  "seoTitle": "<page title naming both teams, the league and the date>",
  "metaDescription": "<155-160 character description of the match and the key prediction>"
}}"""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


class OpenAIClient:
    """Async client for OpenAI chat completions.

    Makes exactly one request per call; failures are raised as
    ``ModelServiceError`` and retried only by the next scheduled run.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIClient":
        settings.require("openai_api_key")
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.openai_timeout_seconds,
        )

    async def complete_json(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        body = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.7,
            "max_tokens": 1200,
            "response_format": {"type": "json_object"},
        }
        try:
            response = await self._client.post(OPENAI_CHAT_URL, json=body)
        except httpx.TimeoutException as exc:
            raise ModelServiceError(f"OpenAI request timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ModelServiceError(f"OpenAI request failed: {exc}") from exc

        if response.status_code != 200:
            raise ModelServiceError(
                f"OpenAI returned HTTP {response.status_code}: {response.text[:500]}"
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
            parsed = json.loads(content)
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ModelServiceError(f"Unreadable OpenAI response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ModelServiceError("OpenAI content is not a JSON object")
        return parsed

    async def request_estimate(self, fixture: Fixture) -> dict[str, Any]:
        logger.debug("Requesting estimate for fixture %d", fixture.external_id)
        return await self.complete_json(build_messages(fixture))

    async def close(self) -> None:
        await self._client.aclose()
