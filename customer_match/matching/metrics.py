"""
Matching session metrics.

Counts what each form session did on the wire and what it threw away, so the
debounce and stale-result behavior can be observed.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class SessionMetrics:
    """Counters for a single matching session."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_cycle_at: Optional[datetime] = None

    # Cycles
    inputs_received: int = 0
    short_circuits: int = 0
    cycles_dispatched: int = 0
    cycles_published: int = 0
    stale_discarded: int = 0

    # Lookups
    name_lookups: int = 0
    phone_lookups: int = 0
    lookup_failures: int = 0
    lookup_latency_seconds: float = 0.0

    # Submissions
    submissions_invalid: int = 0
    submissions_blocked: int = 0
    submissions_created: int = 0
    submissions_failed: int = 0

    def record_lookup(self, kind: str, latency: float, failed: bool = False) -> None:
        """Record one directory lookup."""
        if kind == "name":
            self.name_lookups += 1
        else:
            self.phone_lookups += 1
        self.lookup_latency_seconds += latency
        if failed:
            self.lookup_failures += 1

    def record_cycle(self, published: bool) -> None:
        """Record the end of a dispatched cycle."""
        self.last_cycle_at = datetime.now(timezone.utc)
        if published:
            self.cycles_published += 1
        else:
            self.stale_discarded += 1

    @property
    def network_calls(self) -> int:
        return self.name_lookups + self.phone_lookups

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat()
        data["last_cycle_at"] = (
            self.last_cycle_at.isoformat() if self.last_cycle_at else None
        )
        data["network_calls"] = self.network_calls
        return data
