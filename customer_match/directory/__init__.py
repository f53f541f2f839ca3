"""Customer directory client implementations."""

from customer_match.directory.base import (
    BaseDirectoryClient,
    DirectoryAuthenticationError,
    DirectoryConnectionError,
    DirectoryError,
    DirectoryResponseError,
    DirectorySearchData,
    DirectorySearchResponse,
)
from customer_match.directory.config import CircuitBreakerConfig, DirectoryConfig
from customer_match.directory.factory import create_directory_client
from customer_match.directory.http_client import HttpDirectoryClient
from customer_match.directory.memory_client import InMemoryDirectoryClient
from customer_match.directory.models import CandidateMatch, NewCustomerRequest
from customer_match.directory.resilience import (
    CircuitBreaker,
    CircuitOpenError,
    CircuitState,
)

__all__ = [
    "CandidateMatch",
    "NewCustomerRequest",
    "CircuitBreakerConfig",
    "DirectoryConfig",
    "create_directory_client",
    "BaseDirectoryClient",
    "DirectoryAuthenticationError",
    "DirectoryConnectionError",
    "DirectoryError",
    "DirectoryResponseError",
    "DirectorySearchData",
    "DirectorySearchResponse",
    "HttpDirectoryClient",
    "InMemoryDirectoryClient",
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
]
