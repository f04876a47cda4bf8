"""Small helpers around the Azure Resource Manager REST API and its pagination."""

from __future__ import annotations

import logging
from typing import Any, Callable

import requests
from azure.core.credentials import TokenCredential
from azure.core.exceptions import ClientAuthenticationError

from utils.errors import AuthenticationError

logger = logging.getLogger(__name__)

DEFAULT_MANAGEMENT_URL = "https://management.azure.com"
DATAFACTORY_API_VERSION = "2018-06-01"
DEFAULT_HTTP_TIMEOUT = 60

_MAX_DETAIL_LENGTH = 500


def management_scope(base_url: str) -> str:
    """Return the OAuth scope for a management endpoint (``{base}/.default``)."""
    return f"{base_url.rstrip('/')}/.default"


class ManagementClient:
    """Authenticated HTTPS client for a management endpoint.

    The credential and the session are shared by every caller and are never
    mutated after construction. A bearer token is requested from the
    credential for each call; azure-identity caches it until it expires.
    """

    def __init__(
        self,
        credential: TokenCredential,
        *,
        base_url: str = DEFAULT_MANAGEMENT_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.credential = credential
        self.base_url = base_url.rstrip("/")
        self.scope = management_scope(self.base_url)
        self.timeout = timeout
        self.session = session or requests.Session()

    def resource_url(self, path: str) -> str:
        """Return the absolute URL of an ARM resource path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        try:
            token = self.credential.get_token(self.scope).token
        except ClientAuthenticationError as exc:
            raise AuthenticationError(f"Token acquisition failed: {exc.message or exc}") from exc
        merged_headers = {"Authorization": f"Bearer {token}"}
        merged_headers.update(headers or {})
        logger.debug("%s %s", method, url)
        return self.session.request(
            method,
            url,
            params=params,
            headers=merged_headers,
            timeout=self.timeout,
        )

    def get(self, url: str, *, params: dict[str, str] | None = None) -> requests.Response:
        return self.request("GET", url, params=params)

    def post(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        return self.request("POST", url, params=params, headers=headers)


def response_detail(response: requests.Response) -> str:
    """Return a short, printable description of an error response body."""
    try:
        payload = response.json()
    except ValueError:
        return (response.text or "").strip()[:_MAX_DETAIL_LENGTH]

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message")
        if code and message:
            return f"{code}: {message}"
        return str(message or code or "")
    return str(payload)[:_MAX_DETAIL_LENGTH]


def list_all_pages(
    fetch_page: Callable[[str | None], dict[str, Any]],
    *,
    items_field: str = "value",
    next_link_field: str = "nextLink",
) -> list[dict[str, Any]]:
    """Collect all items across a paginated ARM list endpoint.

    Args:
        fetch_page: Function that accepts ``None`` for the first page, or the
            continuation URL returned by the previous page, and returns the
            parsed response payload (dict).
        items_field: Response field containing list items.
        next_link_field: Response field holding the fully-qualified URL of the
            next page. The URL is passed back unchanged.

    Returns:
        All items from all pages, in received order.
    """
    items: list[dict[str, Any]] = []
    next_link: str | None = None

    while True:
        page = fetch_page(next_link)
        raw_items = page.get(items_field) or []
        if isinstance(raw_items, list):
            items.extend([x for x in raw_items if isinstance(x, dict)])
        next_link = page.get(next_link_field)
        if not next_link:
            break
        logger.debug("Following next link")

    return items
