"""
SyncLife — AI Routine Suggestions.

Turns a free-text goal ("get fit before summer", "prepare for the bar
exam") into a handful of candidate routines. The request is search
grounded where the provider supports it, and the web pages the search
actually returned are reported as sources. The model is never asked to
name sources itself.

The output is import data: normalize_suggestions() fills in whatever the
model left out and gives every routine a fresh id and an empty completion
history.

Any failure (no API key, provider error, bad JSON, schema mismatch)
produces an empty result. Suggestions are a convenience and never an
application error.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable

from pydantic import BaseModel, ValidationError

from synclife.core.llm import GroundingSource, complete
from synclife.data.models import Category, DayOfWeek, Routine

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Routine Task"
DEFAULT_TIME = "08:00"
DEFAULT_CATEGORY = Category.PERSONAL
DEFAULT_DAYS = (DayOfWeek.MONDAY,)

# ---------------------------------------------------------------------------
# JSON contract with the LLM
# ---------------------------------------------------------------------------


class RoutineSuggestion(BaseModel):
    """A partial routine as returned by the model. Every field is optional.

    JSON example:
    {
        "title": "Morning run",
        "time": "07:00",
        "category": "health",
        "days": ["Mon", "Wed", "Fri"]
    }
    """
    title: str | None = None
    time: str | None = None
    category: str | None = None
    days: list[str] | None = None


class SourceCitation(BaseModel):
    uri: str
    title: str = ""


class SuggestionPayload(BaseModel):
    routines: list[RoutineSuggestion] = []


@dataclass
class SuggestionResult:
    routines: list[RoutineSuggestion] = field(default_factory=list)
    sources: list[SourceCitation] = field(default_factory=list)


_SYSTEM_PROMPT = """\
You are an expert life planner. Based on the user's goal, draw on the latest
effective habits, study techniques, or productivity trends and create a
{count}-item daily routine.

Return ONLY a JSON object with this schema:
{{"routines": [{{"title": "string", "time": "HH:MM", "category": "health|work|personal|education", "days": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]}}]}}

- "title" = short, actionable routine title.
- "time" must be in 24-hour format.
- "days" lists the weekdays the routine repeats on, using the 3-letter names above.
- No markdown, no explanation, no extra text.
"""


def _clean_llm_response(raw_text: str) -> str:
    """Remove markdown code block delimiters from LLM's raw response."""
    cleaned_text = raw_text.strip()
    if cleaned_text.startswith("```json"):
        cleaned_text = cleaned_text.removeprefix("```json")
    elif cleaned_text.startswith("```"):
        cleaned_text = cleaned_text.removeprefix("```")
    if cleaned_text.endswith("```"):
        cleaned_text = cleaned_text.removesuffix("```")
    return cleaned_text.strip()


def parse_suggestion_response(raw_text: str) -> SuggestionResult:
    """Validate the model's text. A bare array is accepted as the routine list.

    Raises json.JSONDecodeError or pydantic.ValidationError on bad input.
    """
    data = json.loads(_clean_llm_response(raw_text))
    if isinstance(data, list):
        data = {"routines": data}
    payload = SuggestionPayload.model_validate(data)
    return SuggestionResult(routines=payload.routines)


async def generate_suggestions(goal: str, count: int = 5) -> SuggestionResult:
    """Ask the LLM for routines serving `goal`. Empty result on any failure."""
    if not goal or not goal.strip():
        return SuggestionResult()

    try:
        reply = await complete(
            system=_SYSTEM_PROMPT.format(count=count),
            user_message=f"My goal: {goal.strip()}",
            max_tokens=1024,
            grounded=True,
        )
    except Exception as exc:
        logger.error("Routine suggestion request failed: %s", exc)
        return SuggestionResult()

    raw = reply.text
    try:
        result = parse_suggestion_response(raw)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse suggestion response as JSON: %s (raw: '%s')", exc, raw)
        return SuggestionResult()
    except ValidationError as exc:
        logger.error("Suggestion response did not match schema: %s", exc)
        return SuggestionResult()

    result.sources = _citations(reply.sources)
    logger.info(
        "Suggestions for %r: %d routines, %d sources",
        goal, len(result.routines), len(result.sources),
    )
    return result


def _citations(sources: list[GroundingSource]) -> list[SourceCitation]:
    return [SourceCitation(uri=s.uri, title=s.title) for s in sources]


# ---------------------------------------------------------------------------
# Normalization into full routines
# ---------------------------------------------------------------------------


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _normalize_time(raw: str | None) -> str:
    if not raw or ":" not in raw:
        return DEFAULT_TIME
    try:
        hour, minute = map(int, raw.strip()[:5].split(":"))
    except ValueError:
        return DEFAULT_TIME
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return DEFAULT_TIME
    return f"{hour:02d}:{minute:02d}"


def _normalize_category(raw: str | None) -> Category:
    try:
        return Category((raw or "").strip().lower())
    except ValueError:
        return DEFAULT_CATEGORY


def _normalize_days(raw: list[str] | None) -> list[DayOfWeek]:
    days: list[DayOfWeek] = []
    for value in raw or []:
        try:
            day = DayOfWeek(value.strip()[:3].capitalize())
        except (AttributeError, ValueError):
            logger.debug("Ignoring unknown weekday %r in suggestion", value)
            continue
        if day not in days:
            days.append(day)
    return days or list(DEFAULT_DAYS)


def normalize_suggestions(
    suggestions: list[RoutineSuggestion],
    id_factory: Callable[[], str] = _new_id,
) -> list[Routine]:
    """Build full routines from partial suggestions."""
    routines: list[Routine] = []
    for s in suggestions:
        title = (s.title or "").strip() or DEFAULT_TITLE
        routines.append(
            Routine(
                id=id_factory(),
                title=title,
                time=_normalize_time(s.time),
                days=_normalize_days(s.days),
                category=_normalize_category(s.category),
                completion_history=[],
            )
        )
    return routines
