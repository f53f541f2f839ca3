"""
In-memory customer directory for development and tests.

Searches seeded records the way the dashboard API does: case-insensitive
substring match on the name, or digit substring match on the phone. Latency
and failures can be simulated to exercise the matching engine's ordering and
degradation behavior.
"""

import asyncio
import itertools
import random
from typing import Iterable, List, Optional

from customer_match.directory.base import (
    BaseDirectoryClient,
    DirectoryConnectionError,
    DirectorySearchData,
    DirectorySearchResponse,
)
from customer_match.directory.models import CandidateMatch, NewCustomerRequest
from customer_match.normalize import normalize_name, phone_digits

SAMPLE_CUSTOMERS = [
    {"id": 1, "name": "Ali Khan", "phone": "+923001234567", "type": "Permanent"},
    {"id": 2, "name": "Ahmed Raza", "phone": "+923211112233", "type": "Permanent"},
    {"id": 3, "name": "Ahmed Traders", "phone": "+923334445566", "type": "Wholesale"},
    {"id": 4, "name": "Bilal Ahmed", "phone": "+923455556677", "type": "Permanent"},
    {"id": 5, "name": "Sana Malik", "phone": "+923018889900", "type": "Walk-in"},
    {"id": 6, "name": "Usman General Store", "phone": "+923127654321", "type": "Wholesale"},
]


class InMemoryDirectoryClient(BaseDirectoryClient):
    """Directory client over a list of in-memory customer records."""

    def __init__(
        self,
        customers: Optional[Iterable[CandidateMatch]] = None,
        failure_rate: float = 0.0,
        latency_ms: int = 0,
    ):
        """
        Initialize the in-memory directory.

        Args:
            customers: Seed records (defaults to ``SAMPLE_CUSTOMERS``)
            failure_rate: Probability of a simulated connection failure
            latency_ms: Simulated network latency in milliseconds
        """
        super().__init__()
        if customers is None:
            customers = [CandidateMatch.model_validate(c) for c in SAMPLE_CUSTOMERS]
        self.customers: List[CandidateMatch] = list(customers)
        self.failure_rate = failure_rate
        self.latency_ms = latency_ms
        self.search_calls: List[str] = []
        self.created: List[NewCustomerRequest] = []

        numeric_ids = [c.id for c in self.customers if isinstance(c.id, int)]
        self._ids = itertools.count(max(numeric_ids, default=0) + 1)

    def get_source_name(self) -> str:
        return "memory"

    async def search(self, query: str, limit: int = 50) -> DirectorySearchResponse:
        self.search_calls.append(query)
        await self._simulate_latency()

        if random.random() < self.failure_rate:
            raise DirectoryConnectionError("Simulated directory failure")

        needle = normalize_name(query)
        digits = phone_digits(query)
        matches = [
            customer
            for customer in self.customers
            if (needle and needle in normalize_name(customer.name))
            or (digits and digits in phone_digits(customer.phone))
        ]
        return DirectorySearchResponse(
            success=True, data=DirectorySearchData(customers=matches[:limit])
        )

    async def create_customer(self, request: NewCustomerRequest) -> CandidateMatch:
        await self._simulate_latency()
        self.created.append(request)
        customer = CandidateMatch(
            id=next(self._ids),
            name=request.name,
            phone=request.phone,
            type=request.type,
            current_balance=request.initial_credit or 0.0,
        )
        self.customers.append(customer)
        return customer

    async def _simulate_latency(self) -> None:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000.0)
