"""Combines the name and phone lookup results into one candidate list."""

from __future__ import annotations

from collections.abc import Sequence

from customer_match.matching.models import CandidateMatch


def merge(
    name_results: Sequence[CandidateMatch],
    phone_results: Sequence[CandidateMatch],
) -> list[CandidateMatch]:
    """Merge lookup results, keeping name results first and ids unique.

    Phone results are appended only when their id has not been seen, so an
    entry returned by both lookups stays at its name-result position.
    """
    merged: list[CandidateMatch] = []
    seen: set[int | str] = set()

    for candidate in (*name_results, *phone_results):
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        merged.append(candidate)

    return merged
