"""Authentication helpers for the Azure management API."""

from __future__ import annotations

import logging

from azure.core.exceptions import ClientAuthenticationError
from azure.identity import ClientSecretCredential, ManagedIdentityCredential

from utils.azure_api import DEFAULT_MANAGEMENT_URL, DEFAULT_HTTP_TIMEOUT, ManagementClient
from utils.errors import AuthenticationError

logger = logging.getLogger(__name__)

AUTH_SERVICE_PRINCIPAL = "service-principal"
AUTH_MANAGED_IDENTITY = "managed-identity"
AUTH_SCHEMES = (AUTH_SERVICE_PRINCIPAL, AUTH_MANAGED_IDENTITY)

# Values accepted from service connections, e.g. "ManagedServiceIdentity".
_SCHEME_ALIASES = {
    "serviceprincipal": AUTH_SERVICE_PRINCIPAL,
    "spn": AUTH_SERVICE_PRINCIPAL,
    "managedserviceidentity": AUTH_MANAGED_IDENTITY,
    "managedidentity": AUTH_MANAGED_IDENTITY,
    "msi": AUTH_MANAGED_IDENTITY,
}


def normalize_auth_scheme(scheme: str) -> str:
    """Map a scheme name (CLI or service-connection spelling) to a canonical value."""
    key = scheme.strip().lower().replace("-", "").replace("_", "")
    if key in _SCHEME_ALIASES:
        return _SCHEME_ALIASES[key]
    raise ValueError(f"auth must be one of: {', '.join(AUTH_SCHEMES)}")


def get_credential(
    auth_scheme: str,
    *,
    client_id: str | None = None,
    client_secret: str | None = None,
    tenant_id: str | None = None,
):
    """
    Return an azure-identity credential for the selected scheme.

    Parameters
    ----------
    auth_scheme:
        "service-principal" or "managed-identity" (service-connection spellings
        such as "ManagedServiceIdentity" are accepted too).
    client_id:
        Application id of the service principal, or of a user-assigned managed
        identity. Optional for managed identity.
    client_secret:
        Service principal secret. Ignored for managed identity.
    tenant_id:
        Directory (tenant) id. Ignored for managed identity.
    """
    scheme = normalize_auth_scheme(auth_scheme)

    if scheme == AUTH_MANAGED_IDENTITY:
        if client_id:
            return ManagedIdentityCredential(client_id=client_id)
        return ManagedIdentityCredential()

    missing = [
        name
        for name, value in (
            ("client id", client_id),
            ("client secret", client_secret),
            ("tenant id", tenant_id),
        )
        if not value
    ]
    if missing:
        raise AuthenticationError(
            f"Service principal login requires a {', '.join(missing)}. "
            "Provide AZURE_CLIENT_ID, AZURE_CLIENT_SECRET and AZURE_TENANT_ID.",
        )
    try:
        return ClientSecretCredential(tenant_id, client_id, client_secret)
    except ValueError as exc:
        raise AuthenticationError(f"Azure login failed: {exc}") from exc


def login(
    auth_scheme: str,
    *,
    client_id: str | None = None,
    client_secret: str | None = None,
    tenant_id: str | None = None,
    base_url: str = DEFAULT_MANAGEMENT_URL,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
) -> ManagementClient:
    """Authenticate and return a client for the management endpoint.

    A first token is acquired right away so that a bad credential fails the
    run here instead of on the first API call. Failures are not retried.

    Raises:
        AuthenticationError: If the credential cannot produce a token.
    """
    credential = get_credential(
        auth_scheme,
        client_id=client_id,
        client_secret=client_secret,
        tenant_id=tenant_id,
    )
    client = ManagementClient(credential, base_url=base_url, timeout=timeout)
    try:
        credential.get_token(client.scope)
    except ClientAuthenticationError as exc:
        raise AuthenticationError(f"Azure login failed: {exc.message or exc}") from exc
    logger.debug("Azure client retrieved.")
    return client
