"""
Directory client configuration.

Defines connection settings for the customer directory API and the circuit
breaker that protects it from keystroke-driven lookup storms.
"""

from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from customer_match.core.config import Settings


class CircuitBreakerConfig(BaseModel):
    """Configuration for the circuit breaker guarding directory lookups."""

    failure_threshold: int = Field(
        default=5, ge=1, description="Failures before opening circuit"
    )
    success_threshold: int = Field(
        default=2, ge=1, description="Successes to close circuit"
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Seconds before attempting reset"
    )


class DirectoryConfig(BaseModel):
    """Which directory client to build and how it connects."""

    client_type: Literal["mock", "http"] = Field(
        default="mock", description="Type of directory client (mock, http)"
    )
    base_url: Optional[str] = Field(
        default=None, description="Base URL of the directory API"
    )
    api_token: Optional[str] = Field(default=None, description="Bearer token")
    timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")
    circuit_breaker: CircuitBreakerConfig = Field(
        default_factory=CircuitBreakerConfig
    )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DirectoryConfig":
        return cls(
            client_type=settings.DIRECTORY_CLIENT_TYPE,
            base_url=settings.DIRECTORY_BASE_URL,
            api_token=settings.DIRECTORY_API_TOKEN,
            timeout=settings.DIRECTORY_TIMEOUT_SECONDS,
        )
