"""
Gemini-backed event extraction.

Sends the message to a generative model with a prompt asking for a JSON
event record, then parses and normalizes the reply into an ``EventDraft``.
"""

import json
import logging
import re
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

import google.generativeai as genai

from core.config import (
    DEFAULT_EVENT_DURATION_MINUTES,
    DEFAULT_TIME_ZONE,
    GEMINI_API_KEY,
    GEMINI_GENERATION_CONFIG,
    GEMINI_MODEL,
    PROVIDER_TIMEOUT_SECONDS,
)
from core.errors import ExtractorError, ProviderUnavailableError
from core.google_client import run_with_timeout
from core.log_context import redact
from models.events import EventDraft, load_zone

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "Extract event details from this message and return them in JSON format with fields: "
    "title, description, startTime (ISO format, e.g., \"2025-02-22T16:00:00\"), "
    "endTime (ISO format), location, priority (low/medium/high), "
    "type (meeting/task/reminder/other), timeZone (e.g., \"Asia/Kolkata\"). "
    "If a field is missing, use reasonable defaults "
    "(use \"{time_zone}\" for timeZone if not specified):\n\n{message}"
)
CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

VALID_PRIORITIES = {"low", "medium", "high"}
VALID_TYPES = {"meeting", "task", "reminder", "other"}


def _parse_time(value, tz: ZoneInfo) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=tz)


def parse_generated_event(
    text: str, now: datetime | None = None, default_time_zone: str = DEFAULT_TIME_ZONE
) -> EventDraft:
    """
    Parse the model's reply into a draft, filling defaults for missing fields.

    Raises:
        ExtractorError: the reply is not a JSON object or has unusable times
    """
    cleaned = CODE_FENCE_PATTERN.sub("", text.strip()).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractorError("Extractor returned invalid JSON") from e
    if not isinstance(data, dict):
        raise ExtractorError("Extractor returned an unexpected JSON shape")

    time_zone = data.get("timeZone") or default_time_zone
    tz = load_zone(time_zone)
    if tz is None:
        time_zone = default_time_zone
        tz = ZoneInfo(time_zone)

    now = now or datetime.now(timezone.utc)
    try:
        start = _parse_time(data.get("startTime"), tz) or now.astimezone(tz)
        end = _parse_time(data.get("endTime"), tz) or start + timedelta(
            minutes=DEFAULT_EVENT_DURATION_MINUTES
        )
    except ValueError as e:
        raise ExtractorError("Extractor returned an unparseable time") from e

    priority = str(data.get("priority") or "medium").lower()
    event_type = str(data.get("type") or "meeting").lower()

    return EventDraft(
        title=str(data.get("title") or "Untitled Event"),
        description=str(data.get("description") or ""),
        start=start,
        end=end,
        location=str(data.get("location") or "") or None,
        priority=priority if priority in VALID_PRIORITIES else "medium",
        event_type=event_type if event_type in VALID_TYPES else "other",
        time_zone=time_zone,
    )


class GeminiExtractor:
    """Event extractor calling a Gemini model."""

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model_name: str = GEMINI_MODEL,
        time_zone: str = DEFAULT_TIME_ZONE,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
    ):
        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(
            model_name=model_name, generation_config=GEMINI_GENERATION_CONFIG
        )
        self._time_zone = time_zone
        self._timeout = timeout

    async def extract(self, text: str) -> EventDraft:
        prompt = PROMPT_TEMPLATE.format(time_zone=self._time_zone, message=text)
        try:
            response = await run_with_timeout(
                self._model.generate_content_async(prompt), timeout=self._timeout
            )
            reply = response.text
        except ProviderUnavailableError as e:
            raise ExtractorError("Extractor call timed out") from e
        except Exception as e:
            logger.warning("Extractor call failed", extra={"error": redact(str(e))})
            raise ExtractorError(f"Extractor call failed: {redact(str(e))[:200]}") from e

        return parse_generated_event(reply, default_time_zone=self._time_zone)


@lru_cache(maxsize=1)
def get_generative_extractor() -> GeminiExtractor | None:
    """The configured generative extractor, or None when no API key is set."""
    if not GEMINI_API_KEY:
        return None
    return GeminiExtractor()
