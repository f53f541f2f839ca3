"""Data models shared by the matching engine and the directory clients."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from customer_match.directory.models import CandidateMatch, NewCustomerRequest


CandidateList = tuple[CandidateMatch, ...]
"""Published, immutable, ordered candidate list (at most ``max_candidates``)."""


class MatchQuery(BaseModel):
    """Input driving one matching cycle."""

    model_config = ConfigDict(frozen=True)

    name_fragment: str
    phone_fragment: str
    sequence_number: int = Field(..., ge=1)


class LookupResults(BaseModel):
    """Raw results of a dispatch whose sequence number was still current."""

    query: MatchQuery
    name_results: list[CandidateMatch] = Field(default_factory=list)
    phone_results: list[CandidateMatch] = Field(default_factory=list)


class GuardResult(BaseModel):
    """Verdict of the submission guard."""

    blocked: bool = False
    exact_match: Optional[CandidateMatch] = None


class SessionState(str, Enum):
    """States of one customer-creation form session."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    RESULTS_READY = "results_ready"
    GUARD_CHECKING = "guard_checking"
    BLOCKED = "blocked"
    CREATING = "creating"
    TERMINAL = "terminal"


class SubmissionOutcome(BaseModel):
    """Result of a submit request."""

    status: Literal["invalid", "blocked", "created", "failed"]
    errors: list[str] = Field(default_factory=list)
    exact_match: Optional[CandidateMatch] = None
    created: Optional[CandidateMatch] = None
    error: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == "created"
