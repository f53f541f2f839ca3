import asyncio
from typing import Dict, List, Optional, Set, Tuple

import pytest

from customer_match.directory.base import (
    BaseDirectoryClient,
    DirectorySearchData,
    DirectorySearchResponse,
)
from customer_match.directory.memory_client import SAMPLE_CUSTOMERS
from customer_match.directory.models import CandidateMatch, NewCustomerRequest
from customer_match.matching.config import MatchingConfig
from customer_match.matching.notifier import CollectingNotifier
from customer_match.normalize import normalize_name, phone_digits


class ScriptedDirectory(BaseDirectoryClient):
    """
    Directory double whose answers can be delayed, held or failed per query.

    ``gates`` hold a search until the test sets the event, which lets a test
    decide the order in which concurrent lookups settle.
    """

    def __init__(self, customers: Optional[List[CandidateMatch]] = None):
        super().__init__()
        if customers is None:
            customers = [CandidateMatch.model_validate(c) for c in SAMPLE_CUSTOMERS]
        self.customers = list(customers)
        self.calls: List[Tuple[str, int]] = []
        self.delays: Dict[str, float] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.failures: Dict[str, Exception] = {}
        self.unsuccessful: Set[str] = set()
        self.results: Dict[str, List[CandidateMatch]] = {}
        self.created: List[NewCustomerRequest] = []
        self.create_error: Optional[Exception] = None
        self._next_id = 100

    def get_source_name(self) -> str:
        return "scripted"

    @property
    def queries(self) -> List[str]:
        return [query for query, _ in self.calls]

    def gate(self, query: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[query] = event
        return event

    async def search(self, query: str, limit: int = 50) -> DirectorySearchResponse:
        self.calls.append((query, limit))

        if query in self.gates:
            await self.gates[query].wait()
        if query in self.delays:
            await asyncio.sleep(self.delays[query])
        if query in self.failures:
            raise self.failures[query]
        if query in self.unsuccessful:
            return DirectorySearchResponse(success=False, message="search failed")

        if query in self.results:
            matches = self.results[query]
        else:
            needle = normalize_name(query)
            digits = phone_digits(query)
            matches = [
                c
                for c in self.customers
                if (needle and needle in normalize_name(c.name))
                or (digits and digits in phone_digits(c.phone))
            ]
        return DirectorySearchResponse(
            success=True, data=DirectorySearchData(customers=matches[:limit])
        )

    async def create_customer(self, request: NewCustomerRequest) -> CandidateMatch:
        if self.create_error is not None:
            raise self.create_error
        self.created.append(request)
        self._next_id += 1
        customer = CandidateMatch(
            id=self._next_id, name=request.name, phone=request.phone, type=request.type
        )
        self.customers.append(customer)
        return customer


def candidate(id, name="", phone=None, **extra) -> CandidateMatch:
    return CandidateMatch(id=id, name=name, phone=phone, **extra)


@pytest.fixture
def directory() -> ScriptedDirectory:
    """Directory seeded with the sample customers."""
    return ScriptedDirectory()


@pytest.fixture
def fast_config() -> MatchingConfig:
    """Matching config with a short debounce so tests stay quick."""
    return MatchingConfig(debounce_ms=20)


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()
