"""Helpers for working with Data Factory instances."""

from __future__ import annotations

import logging
from typing import Any

import requests

from utils.azure_api import DATAFACTORY_API_VERSION
from utils.errors import AuthenticationError, ResourceNotFoundError
from utils.targets import FactoryLocator

logger = logging.getLogger(__name__)


class FactoryManager:
    """Factory-level operations."""

    def __init__(self, client: Any):
        self.client = client

    def ensure_factory_exists(self, factory: FactoryLocator) -> None:
        """Fail unless the factory answers a GET with HTTP 200."""
        url = self.client.resource_url(factory.factory_path)
        try:
            response = self.client.get(url, params={"api-version": DATAFACTORY_API_VERSION})
        except (requests.RequestException, AuthenticationError) as exc:
            raise ResourceNotFoundError(
                f"Unable to check Data Factory '{factory.factory_name}': {exc}",
            ) from exc

        if response.status_code != 200:
            raise ResourceNotFoundError(
                f"Data Factory '{factory.factory_name}' could not be found "
                f"(HTTP {response.status_code}).",
            )
        logger.debug("Data Factory '%s' exists", factory.factory_name)
