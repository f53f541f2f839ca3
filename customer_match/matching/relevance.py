"""Relevance rules deciding which merged candidates are shown as duplicates."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from customer_match.matching.config import MatchingConfig
from customer_match.matching.models import CandidateList, CandidateMatch
from customer_match.normalize import normalize_name, phone_digits

logger = logging.getLogger(__name__)


class RelevanceFilter:
    """Keeps candidates whose name or phone plausibly matches the input."""

    def __init__(self, config: MatchingConfig | None = None):
        """
        Initialize relevance filter.

        Args:
            config: Matching configuration (thresholds and cap)
        """
        self.config = config or MatchingConfig()

    def name_match(self, candidate: CandidateMatch, name_fragment: str) -> bool:
        """
        Check the name rule.

        The trimmed, lower-cased fragment must be long enough and then either
        contain, be contained in, or share a long-enough token with the
        candidate's lower-cased name. A nameless candidate is therefore kept
        for any long-enough fragment.

        Args:
            candidate: Directory entry
            name_fragment: Raw name typed by the user

        Returns:
            True if the name rule holds
        """
        fragment = normalize_name(name_fragment)
        if len(fragment) < self.config.min_name_match_length:
            return False

        # Untrimmed; an empty name is contained in every fragment
        candidate_name = (candidate.name or "").lower()

        if fragment in candidate_name or candidate_name in fragment:
            return True

        return any(
            len(token) >= self.config.min_token_length and token in candidate_name
            for token in fragment.split()
        )

    def phone_match(self, candidate: CandidateMatch, digits: str) -> bool:
        """
        Check the phone rule.

        Args:
            candidate: Directory entry
            digits: Phone fragment with non-digits already stripped

        Returns:
            True if the candidate's phone digits contain ``digits``
        """
        if len(digits) < self.config.min_phone_match_digits:
            return False
        return digits in phone_digits(candidate.phone)

    def is_relevant(
        self, candidate: CandidateMatch, name_fragment: str, digits: str
    ) -> bool:
        return self.name_match(candidate, name_fragment) or self.phone_match(
            candidate, digits
        )

    def filter(
        self,
        merged: Sequence[CandidateMatch],
        name_fragment: str,
        digits: str,
    ) -> CandidateList:
        """
        Apply relevance rules and cap the result.

        Args:
            merged: Merger output, in display order
            name_fragment: Raw name typed by the user
            digits: Digit-stripped phone fragment

        Returns:
            Up to ``max_candidates`` relevant candidates in merger order
        """
        retained: list[CandidateMatch] = []
        for candidate in merged:
            if not self.is_relevant(candidate, name_fragment, digits):
                continue
            retained.append(candidate)
            if len(retained) >= self.config.max_candidates:
                break

        logger.debug(
            f"[RELEVANCE] Kept {len(retained)} of {len(merged)} merged candidates"
        )
        return tuple(retained)
