"""Configuration for the duplicate-matching engine.

Cycle Flow:
-----------
1. Input changes reset the debounce timer (``debounce_ms``).
2. When the timer fires, the dispatcher issues a name lookup (trimmed name has
   at least ``min_name_search_length`` chars) and a phone lookup (at least
   ``phone_search_min_digits`` digits), each limited to ``search_limit`` rows.
3. Results are merged (name results first) and filtered:
   - name rule needs a fragment of at least ``min_name_match_length`` chars
   - token rule needs tokens of at least ``min_token_length`` chars
   - phone rule needs at least ``min_phone_match_digits`` digits
4. At most ``max_candidates`` survive and are published.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from customer_match.core.config import Settings


class FormDefaults(BaseModel):
    """Prefilled values sent with every new customer; not user-editable."""

    city: str = Field(default="Mianwali", description="Default city")
    customer_type: str = Field(default="Permanent", description="Default type")
    credit_limit: float = Field(default=50000.0, ge=0, description="Credit limit")


class MatchingConfig(BaseModel):
    """Main configuration for the matching engine."""

    debounce_ms: int = Field(
        default=400, ge=0, le=10_000, description="Quiet period before dispatch"
    )
    search_limit: int = Field(
        default=50, ge=1, le=500, description="Rows requested per lookup"
    )
    max_candidates: int = Field(
        default=10, ge=1, le=100, description="Cap on published candidates"
    )
    min_name_search_length: int = Field(
        default=1, ge=1, description="Trimmed name length that triggers a lookup"
    )
    min_name_match_length: int = Field(
        default=2, ge=1, description="Trimmed name length for the name rule"
    )
    min_token_length: int = Field(
        default=2, ge=1, description="Token length for the per-word name rule"
    )
    phone_search_min_digits: int = Field(
        default=5, ge=1, description="Digit count that triggers a phone lookup"
    )
    min_phone_match_digits: int = Field(
        default=5, ge=1, description="Digit count for the phone rule"
    )
    phone_placeholder: str = Field(
        default="+92", description="Country-code prefix prefilled in the phone field"
    )
    enforce_phone_prefix: bool = Field(
        default=False,
        description="Replace phone input that does not start with the prefix by the prefix",
    )

    form_defaults: FormDefaults = Field(default_factory=FormDefaults)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "MatchingConfig":
        """Build a config whose deployment-specific values come from settings."""
        return cls(debounce_ms=settings.MATCH_DEBOUNCE_MS)
