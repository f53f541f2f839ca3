"""
Query dispatcher.

Issues the name and phone lookups of one matching cycle concurrently and
drops the outcome when a newer cycle was issued while they were in flight.
"""

import asyncio
import time
from typing import List, Optional

import structlog

from customer_match.directory.base import BaseDirectoryClient
from customer_match.directory.resilience import CircuitBreaker
from customer_match.matching.config import MatchingConfig
from customer_match.matching.metrics import SessionMetrics
from customer_match.matching.models import CandidateMatch, LookupResults, MatchQuery
from customer_match.normalize import phone_digits

logger = structlog.get_logger()


class DispatcherRetiredError(RuntimeError):
    """Raised when a query is issued after the owning session was disposed."""


class QueryDispatcher:
    """
    Owns the cycle sequence counter and runs directory lookups.

    The counter only moves forward. A dispatch result is returned only if its
    sequence number is still the latest one issued when both lookups settle;
    requests are never aborted on the wire, stale answers are just ignored.
    """

    def __init__(
        self,
        client: BaseDirectoryClient,
        config: Optional[MatchingConfig] = None,
        metrics: Optional[SessionMetrics] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            client: Directory client used for both lookups
            config: Matching configuration
            metrics: Session metrics to update (a private instance if omitted)
            circuit_breaker: Breaker shared with other sessions, if any
        """
        self.client = client
        self.config = config or MatchingConfig()
        self.metrics = metrics or SessionMetrics()
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self._sequence = 0
        self._retired = False

    @property
    def latest_sequence(self) -> int:
        return self._sequence

    @property
    def retired(self) -> bool:
        return self._retired

    def issue(self, name_fragment: str, phone_fragment: str) -> MatchQuery:
        """Allocate the next sequence number for a new cycle."""
        if self._retired:
            raise DispatcherRetiredError("Dispatcher no longer accepts queries")
        self._sequence += 1
        return MatchQuery(
            name_fragment=name_fragment,
            phone_fragment=phone_fragment,
            sequence_number=self._sequence,
        )

    def invalidate(self) -> None:
        """Make every outstanding cycle stale without issuing a new one."""
        self._sequence += 1

    def retire(self) -> None:
        """Permanently stop issuing; all in-flight results become stale."""
        self._retired = True

    def is_current(self, sequence_number: int) -> bool:
        return not self._retired and sequence_number == self._sequence

    async def dispatch(self, query: MatchQuery) -> Optional[LookupResults]:
        """
        Run the lookups for ``query``.

        Returns:
            Lookup results, or None when a newer query superseded this one
        """
        name = query.name_fragment.strip()
        digits = phone_digits(query.phone_fragment)

        name_lookup = (
            self._lookup("name", name)
            if len(name) >= self.config.min_name_search_length
            else _no_lookup()
        )
        phone_lookup = (
            self._lookup("phone", digits)
            if len(digits) >= self.config.phone_search_min_digits
            else _no_lookup()
        )

        self.metrics.cycles_dispatched += 1
        logger.debug(
            "cycle.dispatched",
            sequence=query.sequence_number,
            name=name or None,
            phone_digits=digits or None,
        )

        name_results, phone_results = await asyncio.gather(name_lookup, phone_lookup)

        if not self.is_current(query.sequence_number):
            logger.debug(
                "cycle.stale_discarded",
                sequence=query.sequence_number,
                latest=self._sequence,
                retired=self._retired,
            )
            return None

        return LookupResults(
            query=query, name_results=name_results, phone_results=phone_results
        )

    async def _lookup(self, kind: str, text: str) -> List[CandidateMatch]:
        """Run one search; any failure degrades to an empty result."""
        start = time.perf_counter()
        try:
            response = await self.circuit_breaker.call_async(
                lambda: self.client.search(text, limit=self.config.search_limit)
            )
        except Exception as e:
            self.metrics.record_lookup(kind, time.perf_counter() - start, failed=True)
            logger.warning(
                "lookup.failed",
                kind=kind,
                source=self.client.get_source_name(),
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        latency = time.perf_counter() - start
        if not response.success:
            self.metrics.record_lookup(kind, latency, failed=True)
            logger.warning(
                "lookup.unsuccessful", kind=kind, message=response.message
            )
            return []

        self.metrics.record_lookup(kind, latency)
        return response.customers


async def _no_lookup() -> List[CandidateMatch]:
    return []
