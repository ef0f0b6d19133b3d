from __future__ import annotations

import json

import pytest
import responses

from marketplace_console.clients.auth_client import PASSWORD_RESET_MESSAGE, AuthClient
from marketplace_console.clients.directory_client import DirectoryClient
from marketplace_console.clients.exceptions import AuthError, InvalidResponseError
from marketplace_console.clients.http_client import HttpClient
from marketplace_console.app.session_store import SessionStore
from marketplace_console.app.storage import AUTH_TOKEN_KEY, TENANT_ID_KEY
from marketplace_console.config import ConsoleConfig
from marketplace_console.models import PersistenceMode

BASE = "https://api.example.com"

USER_PAYLOAD = {
    "id": "7",
    "name": "Dana Ops",
    "email": "dana@example.com",
    "role": "SELLER",
    "tenantId": "tenant1",
    "sellerId": "SELLER-002",
    "lastLogin": "2024-03-01T09:00:00Z",
}


@pytest.fixture
def http() -> HttpClient:
    return HttpClient(ConsoleConfig(api_base_url=BASE, use_mock_data=False, retries=0, retry_backoff_seconds=0))


@responses.activate
def test_login_parses_camel_case_payload(http: HttpClient) -> None:
    responses.add(
        responses.POST,
        f"{BASE}/admin/login",
        json={"user": USER_PAYLOAD, "token": "tok-1", "sessionId": "s-1", "requiresTwoFactor": False},
    )

    response = AuthClient(http=http).login("dana@example.com", "pw", tenant_id="tenant1")

    assert response.token == "tok-1"
    assert response.session_id == "s-1"
    assert response.user.role == "seller"
    assert response.user.seller_id == "SELLER-002"
    sent = responses.calls[0].request
    assert json.loads(sent.body) == {"email": "dana@example.com", "password": "pw"}
    assert sent.headers["X-Tenant-ID"] == "tenant1"


@responses.activate
def test_verify_two_factor_sends_session_id(http: HttpClient) -> None:
    responses.add(responses.POST, f"{BASE}/admin/verify-2fa", json={"success": True, "token": "tok-2"})

    result = AuthClient(http=http).verify_two_factor("123456", "s-1")

    assert result.success is True
    assert result.token == "tok-2"
    assert json.loads(responses.calls[0].request.body) == {"code": "123456", "sessionId": "s-1"}


@responses.activate
def test_me_sends_bearer_and_tenant_headers(http: HttpClient) -> None:
    responses.add(responses.GET, f"{BASE}/admin/me", json=USER_PAYLOAD)

    user = AuthClient(http=http).me("tok-1", "tenant1")

    headers = responses.calls[0].request.headers
    assert headers["Authorization"] == "Bearer tok-1"
    assert headers["X-Tenant-ID"] == "tenant1"
    assert user.tenant_id == "tenant1"


@responses.activate
def test_me_rejection_raises_auth_error(http: HttpClient) -> None:
    responses.add(responses.GET, f"{BASE}/admin/me", status=401, json={"code": "TOKEN_EXPIRED"})

    with pytest.raises(AuthError):
        AuthClient(http=http).me("tok-1")


@responses.activate
def test_password_reset_uses_generic_message_when_body_is_empty(http: HttpClient) -> None:
    responses.add(responses.POST, f"{BASE}/admin/password-reset", status=204)

    assert AuthClient(http=http).request_password_reset("x@example.com") == PASSWORD_RESET_MESSAGE


@pytest.mark.parametrize(
    ("status", "body", "expected"),
    [
        (200, {"valid": True}, True),
        (200, {"valid": False}, False),
        (204, None, True),
        (401, {"code": "SESSION_EXPIRED"}, False),
        (404, {"code": "NOT_FOUND"}, False),
    ],
)
@responses.activate
def test_verify_session(http: HttpClient, status: int, body, expected: bool) -> None:
    responses.add(responses.POST, f"{BASE}/admin/verify-session", status=status, json=body)

    assert AuthClient(http=http).verify_session("s-1") is expected


@responses.activate
def test_directory_client_uses_current_credentials(http: HttpClient, storage) -> None:
    storage.put(AUTH_TOKEN_KEY, "tok-9", PersistenceMode.EPHEMERAL)
    storage.put(TENANT_ID_KEY, "tenant2", PersistenceMode.EPHEMERAL)
    responses.add(responses.GET, f"{BASE}/admin/sellers", json={"sellers": [{"id": "S1", "name": "Shop"}]})
    responses.add(
        responses.GET,
        f"{BASE}/admin/artisans",
        json={"items": [{"id": "A1", "name": "Maker", "sellerId": "S1"}]},
    )
    client = DirectoryClient(http, SessionStore(storage))

    sellers = client.list_sellers()
    artisans = client.list_artisans()

    assert [seller.id for seller in sellers] == ["S1"]
    assert artisans[0].seller_id == "S1"
    headers = responses.calls[0].request.headers
    assert headers["Authorization"] == "Bearer tok-9"
    assert headers["X-Tenant-ID"] == "tenant2"


@responses.activate
def test_login_with_html_body_is_invalid_response(http: HttpClient) -> None:
    responses.add(
        responses.POST,
        f"{BASE}/admin/login",
        body="<html><body>Maintenance</body></html>",
        content_type="text/html",
    )

    with pytest.raises(InvalidResponseError) as exc_info:
        AuthClient(http=http).login("dana@example.com", "pw")

    assert exc_info.value.code == "INVALID_RESPONSE"
    assert exc_info.value.raw_payload == {"message": "<html><body>Maintenance</body></html>"}
    assert exc_info.value.trace_id


@responses.activate
def test_directory_rejects_malformed_entries(http: HttpClient, storage) -> None:
    responses.add(responses.GET, f"{BASE}/admin/sellers", json=[{"id": "S-1"}])

    with pytest.raises(InvalidResponseError):
        DirectoryClient(http, SessionStore(storage)).list_sellers()
