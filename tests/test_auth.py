from __future__ import annotations

from unittest.mock import patch

import pytest
from azure.core.exceptions import ClientAuthenticationError

from utils.auth import get_credential, login, normalize_auth_scheme
from utils.azure_api import ManagementClient
from utils.errors import AuthenticationError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("service-principal", "service-principal"),
        ("ServicePrincipal", "service-principal"),
        ("managed-identity", "managed-identity"),
        ("ManagedServiceIdentity", "managed-identity"),
    ],
)
def test_normalize_auth_scheme_accepts_service_connection_spellings(raw, expected) -> None:
    assert normalize_auth_scheme(raw) == expected


def test_normalize_auth_scheme_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        normalize_auth_scheme("certificate")


def test_get_credential_managed_identity_ignores_secret() -> None:
    with patch("utils.auth.ManagedIdentityCredential") as msi:
        credential = get_credential("managed-identity", client_secret="unused")
    msi.assert_called_once_with()
    assert credential is msi.return_value


def test_get_credential_user_assigned_identity() -> None:
    with patch("utils.auth.ManagedIdentityCredential") as msi:
        get_credential("managed-identity", client_id="app-1")
    msi.assert_called_once_with(client_id="app-1")


def test_get_credential_service_principal() -> None:
    with patch("utils.auth.ClientSecretCredential") as spn:
        get_credential(
            "service-principal",
            client_id="app-1",
            client_secret="s3cret",
            tenant_id="tenant-1",
        )
    spn.assert_called_once_with("tenant-1", "app-1", "s3cret")


def test_get_credential_service_principal_requires_all_values() -> None:
    with pytest.raises(AuthenticationError, match="client secret"):
        get_credential("service-principal", client_id="app-1", tenant_id="tenant-1")


def test_login_acquires_token_and_returns_client() -> None:
    with patch("utils.auth.ClientSecretCredential") as spn:
        client = login(
            "service-principal",
            client_id="app-1",
            client_secret="s3cret",
            tenant_id="tenant-1",
        )

    assert isinstance(client, ManagementClient)
    assert client.credential is spn.return_value
    spn.return_value.get_token.assert_called_once_with("https://management.azure.com/.default")


def test_login_failure_is_authentication_error() -> None:
    with patch("utils.auth.ClientSecretCredential") as spn:
        spn.return_value.get_token.side_effect = ClientAuthenticationError("AADSTS7000215: bad secret")
        with pytest.raises(AuthenticationError, match="AADSTS7000215"):
            login(
                "service-principal",
                client_id="app-1",
                client_secret="wrong",
                tenant_id="tenant-1",
            )
