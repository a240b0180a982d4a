import json
from decimal import Decimal

import httpx
import pytest

from storefront.auth.provider import AuthError
from storefront.auth.rest import RestAuthProvider
from storefront.db.base import BackendError
from storefront.db.query import EQ, Filter, Query
from storefront.db.rest_backend import RestBackend

pytestmark = pytest.mark.anyio

BASE_URL = "https://project.example.co"


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_select_encodes_filters_order_and_limit():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1, "name": "Desk Lamp"}])

    db = RestBackend(BASE_URL, "anon-key", client=_client(handler))
    query = Query("products").eq("category", "lighting").neq("id", 3).in_("id", [1, 2]).ilike("name", "%lamp%")
    rows = await db.select(query.order("price", ascending=False).limit(4))

    assert rows == [{"id": 1, "name": "Desk Lamp"}]
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/products"
    params = request.url.params
    assert params["select"] == "*"
    assert params["category"] == "eq.lighting"
    assert params.get_list("id") == ["neq.3", "in.(1,2)"]
    assert params["name"] == "ilike.*lamp*"
    assert params["order"] == "price.desc"
    assert params["limit"] == "4"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"


async def test_session_view_sends_user_token():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json=[{"id": 9, "status": "pending", "total": "11.00"}])

    db = RestBackend(BASE_URL, "anon-key", client=_client(handler)).for_session("user-jwt")
    rows = await db.insert("orders", {"user_id": "u1", "status": "pending", "total": Decimal("11.00")})

    assert rows[0]["id"] == 9
    request = seen[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer user-jwt"
    assert request.headers["Prefer"] == "return=representation"
    assert json.loads(request.content) == {"user_id": "u1", "status": "pending", "total": "11.00"}


async def test_update_sends_filters_as_params():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": "u1", "address": "x"}])

    db = RestBackend(BASE_URL, "anon-key", client=_client(handler))
    await db.update("profiles", {"address": "x"}, [Filter("id", EQ, "u1")])

    request = seen[0]
    assert request.method == "PATCH"
    assert request.url.params["id"] == "eq.u1"
    assert json.loads(request.content) == {"address": "x"}


async def test_update_without_filter_is_refused():
    db = RestBackend(BASE_URL, "anon-key", client=_client(lambda r: httpx.Response(200, json=[])))
    with pytest.raises(BackendError):
        await db.update("profiles", {"address": "x"}, [])


async def test_error_response_becomes_backend_error():
    def handler(request):
        return httpx.Response(409, json={"message": "duplicate key value violates unique constraint"})

    db = RestBackend(BASE_URL, "anon-key", client=_client(handler))
    with pytest.raises(BackendError) as exc:
        await db.insert("orders", {"user_id": "u1"})
    assert exc.value.status_code == 409
    assert "duplicate key" in exc.value.message


async def test_single_wants_exactly_one_row():
    db = RestBackend(BASE_URL, "anon-key", client=_client(lambda r: httpx.Response(200, json=[])))
    with pytest.raises(BackendError) as exc:
        await db.single(Query("profiles").eq("id", "missing"))
    assert exc.value.status_code == 406


async def test_unreachable_service_becomes_backend_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    db = RestBackend(BASE_URL, "anon-key", client=_client(handler))
    with pytest.raises(BackendError):
        await db.select(Query("products"))


def _session_payload(user_id="u1", email="ada@example.com"):
    return {
        "access_token": "jwt-token",
        "refresh_token": "refresh",
        "expires_at": 1700000000,
        "user": {"id": user_id, "email": email},
    }


async def test_sign_in_posts_password_grant():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=_session_payload())

    provider = RestAuthProvider(BASE_URL, "anon-key", client=_client(handler))
    session = await provider.sign_in_with_password("ada@example.com", "secret123")

    assert session.access_token == "jwt-token"
    assert session.user_id == "u1"
    assert session.expires_at == 1700000000
    request = seen[0]
    assert request.url.path == "/auth/v1/token"
    assert request.url.params["grant_type"] == "password"
    assert json.loads(request.content) == {"email": "ada@example.com", "password": "secret123"}


async def test_sign_in_error_uses_service_message():
    def handler(request):
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

    provider = RestAuthProvider(BASE_URL, "anon-key", client=_client(handler))
    with pytest.raises(AuthError) as exc:
        await provider.sign_in_with_password("ada@example.com", "nope")
    assert exc.value.message == "Invalid login credentials"
    assert exc.value.status_code == 400


async def test_sign_up_with_auto_confirm_returns_session():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=_session_payload(user_id="new-user"))

    provider = RestAuthProvider(BASE_URL, "anon-key", client=_client(handler))
    result = await provider.sign_up("ada@example.com", "secret123", {"full_name": "Ada"})

    assert result.user.id == "new-user"
    assert result.session.access_token == "jwt-token"
    assert json.loads(seen[0].content)["data"] == {"full_name": "Ada"}


async def test_sign_up_requiring_confirmation_returns_bare_user():
    def handler(request):
        return httpx.Response(200, json={"id": "pending-user", "email": "ada@example.com"})

    provider = RestAuthProvider(BASE_URL, "anon-key", client=_client(handler))
    result = await provider.sign_up("ada@example.com", "secret123", {"full_name": "Ada"})

    assert result.user.id == "pending-user"
    assert result.session is None


async def test_sign_out_and_get_user_send_bearer_token():
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path.endswith("/logout"):
            return httpx.Response(204)
        return httpx.Response(200, json={"id": "u1", "email": "ada@example.com"})

    provider = RestAuthProvider(BASE_URL, "anon-key", client=_client(handler))
    user = await provider.get_user("jwt-token")
    await provider.sign_out("jwt-token")

    assert user.id == "u1"
    assert [r.url.path for r in seen] == ["/auth/v1/user", "/auth/v1/logout"]
    assert all(r.headers["Authorization"] == "Bearer jwt-token" for r in seen)


async def test_expired_token_is_rejected():
    def handler(request):
        return httpx.Response(401, json={"msg": "invalid JWT: token is expired"})

    provider = RestAuthProvider(BASE_URL, "anon-key", client=_client(handler))
    with pytest.raises(AuthError) as exc:
        await provider.get_user("stale")
    assert exc.value.status_code == 401
    assert "expired" in exc.value.message
