"""Submission-time checks: required fields and exact phone duplicates."""

from __future__ import annotations

from collections.abc import Sequence

from customer_match.matching.config import MatchingConfig
from customer_match.matching.models import CandidateMatch, GuardResult
from customer_match.normalize import is_placeholder_phone, phone_digits

MISSING_NAME = "Please provide customer name"
MISSING_PHONE = "Please provide customer phone number"


class SubmissionGuard:
    """Vetoes creation when the typed phone exactly matches a known candidate."""

    def __init__(self, config: MatchingConfig | None = None):
        self.config = config or MatchingConfig()

    def validate_submission(self, name: str | None, phone: str | None) -> list[str]:
        """Return user-facing messages for missing required fields."""
        errors: list[str] = []
        if not (name or "").strip():
            errors.append(MISSING_NAME)
        if is_placeholder_phone(phone, self.config.phone_placeholder):
            errors.append(MISSING_PHONE)
        return errors

    def check_before_create(
        self,
        submitted_phone: str | None,
        current_candidates: Sequence[CandidateMatch],
    ) -> GuardResult:
        """
        Scan the already-published candidates for an exact phone match.

        Digits must be equal, not merely contained. No directory call is made;
        only the list computed by the latest cycle is consulted.

        Args:
            submitted_phone: Phone as typed
            current_candidates: Candidate list currently published

        Returns:
            GuardResult with the first conflicting candidate, if any
        """
        submitted = phone_digits(submitted_phone)
        if not submitted:
            return GuardResult(blocked=False)

        for candidate in current_candidates:
            if phone_digits(candidate.phone) == submitted:
                return GuardResult(blocked=True, exact_match=candidate)

        return GuardResult(blocked=False)
