"""Builds the configured directory client."""

import structlog

from customer_match.directory.base import BaseDirectoryClient
from customer_match.directory.config import DirectoryConfig
from customer_match.directory.http_client import HttpDirectoryClient
from customer_match.directory.memory_client import InMemoryDirectoryClient

logger = structlog.get_logger()


def create_directory_client(config: DirectoryConfig) -> BaseDirectoryClient:
    """Create the directory client selected by ``config.client_type``."""
    if config.client_type == "http":
        if not config.base_url:
            raise ValueError("DIRECTORY_BASE_URL is required for the http client")
        return HttpDirectoryClient(
            base_url=config.base_url,
            api_token=config.api_token,
            timeout=config.timeout,
        )

    logger.info("directory.using_memory_client", client_type=config.client_type)
    return InMemoryDirectoryClient()
