"""Research models for the FestiFind orchestrator.

Defines Pydantic v2 models for the research request, the findings produced
by individual tool calls, validated LinkedIn references and the terminal
research result.  All models use frozen config to enforce immutability.

Lifecycle:
    ResearchQuery       -- supplied by the caller, validated before any work.
    Finding             -- one per tool call, appended in call order.
    LinkedInProfileRef  -- one per URL validation that reported a valid URL.
    ResearchResult      -- built once when the loop terminates, returned to
                           the caller and broadcast as the ``complete`` event.

Nothing here is persisted; callers store results themselves.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TargetInfo(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Information categories a research run can pursue."""

    LINKEDIN_COMPANY = "linkedin_company"
    LINKEDIN_ORGANIZERS = "linkedin_organizers"
    CONTACT_EMAILS = "contact_emails"
    SOCIAL_MEDIA = "social_media"
    VENUE_DETAILS = "venue_details"
    TICKET_PRICING = "ticket_pricing"
    ARTIST_LINEUP = "artist_lineup"
    SPONSORSHIP_INFO = "sponsorship_info"


class Priority(str, Enum):  # noqa: UP042
    """Advisory urgency passed into the prompt; does not change loop mechanics."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class ResearchStatus(str, Enum):  # noqa: UP042
    COMPLETED = "completed"
    FAILED = "failed"


class LinkedInProfileType(str, Enum):  # noqa: UP042
    COMPANY = "company"
    PERSON = "person"
    EVENT = "event"


class ToolKind(str, Enum):  # noqa: UP042
    """Role a tool plays in research; drives confidence scoring."""

    URL_VALIDATOR = "url_validator"
    PAGE_EXTRACTOR = "page_extractor"
    WEB_SEARCH = "web_search"
    LINKEDIN_SEARCH = "linkedin_search"
    OTHER = "other"


# ---------------------------------------------------------------------------
# ResearchQuery: what the caller asks for.
# ---------------------------------------------------------------------------
class ResearchQuery(BaseModel):
    """A request to research one festival.

    ``max_depth`` and ``priority`` are advisory: they shape the initial
    prompt but are not enforced by the loop.
    """

    model_config = ConfigDict(frozen=True)

    festival_id: str | None = None
    festival_name: str
    target_info: list[TargetInfo] = Field(min_length=1)
    max_depth: int = Field(default=3, ge=1, le=5)
    priority: Priority = Priority.NORMAL

    @field_validator("festival_name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("festival_name must not be empty")
        return value

    @field_validator("target_info")
    @classmethod
    def _dedupe_targets(cls, value: list[TargetInfo]) -> list[TargetInfo]:
        # Ordered set: keep the first occurrence of each category.
        return list(dict.fromkeys(value))


# ---------------------------------------------------------------------------
# Finding: one scored observation from one tool call.
# ---------------------------------------------------------------------------
class Finding(BaseModel):
    """A normalized, confidence-scored observation from a single tool call.

    ``data`` holds the decoded JSON payload, or the raw string when the tool
    output was not valid JSON.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    data: Any = None
    confidence: float = Field(ge=0.0, le=1.0)
    source: str
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class LinkedInProfileRef(BaseModel):
    """A validated reference to a LinkedIn company, person or event page."""

    model_config = ConfigDict(frozen=True)

    url: str
    type: LinkedInProfileType
    name: str
    role: str | None = None


# ---------------------------------------------------------------------------
# ResearchResult: terminal output of one research() call.
# ---------------------------------------------------------------------------
class ResearchResult(BaseModel):
    """The outcome of one orchestrated research run.

    ``error`` is set exactly when ``status`` is FAILED.  Findings gathered
    before a failure are kept.
    """

    model_config = ConfigDict(frozen=True)

    festival_id: str | None = None
    festival_name: str
    findings: list[Finding] = Field(default_factory=list)
    linkedin_profiles: list[LinkedInProfileRef] | None = None
    status: ResearchStatus
    error: str | None = None
    iterations: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _error_iff_failed(self) -> ResearchResult:
        if self.status is ResearchStatus.FAILED and not self.error:
            raise ValueError("a failed result must carry an error message")
        if self.status is ResearchStatus.COMPLETED and self.error is not None:
            raise ValueError("a completed result must not carry an error message")
        return self

    def high_confidence_findings(self, threshold: float = 0.8) -> list[Finding]:
        """Findings whose confidence is at or above *threshold*."""
        return [f for f in self.findings if f.confidence >= threshold]
