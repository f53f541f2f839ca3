"""
Base customer directory client interface.

Defines the contract that every directory backend must implement: a
paginated text search and the create operation used once a new customer
passes the duplicate checks.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import BaseModel, Field

from customer_match.directory.models import CandidateMatch, NewCustomerRequest


class DirectorySearchData(BaseModel):
    """Payload of a search response."""

    customers: List[CandidateMatch] = Field(default_factory=list)


class DirectorySearchResponse(BaseModel):
    """Search response envelope: ``{success, data: {customers}}``."""

    success: bool = True
    data: Optional[DirectorySearchData] = None
    message: Optional[str] = None

    @property
    def customers(self) -> List[CandidateMatch]:
        """Customers of a successful response; empty otherwise."""
        if not self.success or self.data is None:
            return []
        return self.data.customers


class BaseDirectoryClient(ABC):
    """
    Abstract base class for customer directory clients.

    Implementations must be safe to call concurrently from one event loop;
    the matching engine runs a name and a phone search at the same time.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL for the directory API
            api_token: Bearer token for authentication
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.api_token = api_token
        self.timeout = timeout

    @abstractmethod
    async def search(self, query: str, limit: int = 50) -> DirectorySearchResponse:
        """
        Search customers by free text (name or phone digits).

        Args:
            query: Search text
            limit: Maximum number of customers to return

        Returns:
            Search response envelope

        Raises:
            DirectoryConnectionError: If the service cannot be reached
            DirectoryAuthenticationError: If credentials are rejected
            DirectoryResponseError: If the service answers with an error
        """
        pass

    @abstractmethod
    async def create_customer(self, request: NewCustomerRequest) -> CandidateMatch:
        """
        Create a new customer record.

        Args:
            request: Validated customer payload

        Returns:
            The created record as the directory returns it
        """
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        """
        Get the name of this directory backend.

        Returns:
            Source identifier (e.g., 'http', 'memory')
        """
        pass

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
        return None


class DirectoryError(Exception):
    """Base exception for directory client errors."""

    pass


class DirectoryConnectionError(DirectoryError):
    """Raised when the directory service cannot be reached."""

    pass


class DirectoryAuthenticationError(DirectoryError):
    """Raised when the directory rejects the credentials."""

    pass


class DirectoryResponseError(DirectoryError):
    """Raised when the directory returns an error status or malformed data."""

    pass
