# tests/conftest.py
import asyncio
import os
import uuid
from datetime import datetime, timezone

# Settings are read at import time: provide the required secrets first
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key-for-tests")

import httpx
import pytest
import pytest_asyncio
from redis.exceptions import RedisError

from storefront.clients.supabase import AuthApiError, PostgrestError, get_supabase_client
from storefront.core.locks import KeyedLocks
from storefront.core.redis import get_redis_client
from storefront.main import app
from storefront.schemas.product import Product
from storefront.schemas.user import AuthSession, AuthUser
from storefront.services.cart import CartSession
from storefront.services.guest_cart import GuestCartStore

TEST_USER_ID = "11111111-1111-1111-1111-111111111111"
TEST_EMAIL = "a@b.com"
TEST_PASSWORD = "x"
VALID_TOKEN = "valid-access-token"


# --- In-memory doubles ---

class FakeAuth:
    """Identity provider double: one known user, one valid token."""

    def __init__(self):
        self.users = {TEST_EMAIL: (TEST_PASSWORD, {"id": TEST_USER_ID, "email": TEST_EMAIL, "role": "authenticated"})}
        self.tokens = {VALID_TOKEN: TEST_USER_ID}
        self.calls = []
        self.fail_sign_out = False

    def _user_by_id(self, user_id):
        return next(u for _, u in self.users.values() if u["id"] == user_id)

    async def sign_in_with_password(self, email, password):
        self.calls.append(("sign_in", email))
        await asyncio.sleep(0)
        known = self.users.get(email)
        if not known or known[0] != password:
            raise AuthApiError("Invalid login credentials", status=400, code="invalid_credentials")
        return AuthSession(
            access_token=VALID_TOKEN, refresh_token="refresh-token",
            expires_in=3600, user=AuthUser.model_validate(known[1]),
        )

    async def get_user(self, jwt):
        self.calls.append(("get_user", jwt))
        await asyncio.sleep(0)
        user_id = self.tokens.get(jwt)
        if not user_id:
            raise AuthApiError("invalid JWT: unable to parse or verify signature", status=403, code="bad_jwt")
        return AuthUser.model_validate(self._user_by_id(user_id))

    async def admin_sign_out(self, jwt, scope="global"):
        self.calls.append(("sign_out", jwt))
        await asyncio.sleep(0)
        if self.fail_sign_out:
            raise AuthApiError("Session not found", status=404, code="session_not_found")
        self.tokens.pop(jwt, None)


class FakeSupabase:
    """
    PostgREST double keeping tables as lists of dicts.
    Every call yields to the event loop once, so concurrent callers interleave
    the way real network round-trips would.
    `fail_on` holds (operation, table) pairs that raise a store error.
    """

    def __init__(self):
        self.auth = FakeAuth()
        self.tables = {
            "products": [], "cart_items": [], "orders": [], "order_items": [],
            "profiles": [], "user_addresses": [],
        }
        self.fail_on = set()
        self.calls = []

    async def _enter(self, operation, table):
        self.calls.append((operation, table))
        await asyncio.sleep(0)
        if (operation, table) in self.fail_on:
            raise PostgrestError("simulated store failure", status=500, code="XX000")

    def _matches(self, row, filters):
        return all(row.get(col) == value for col, value in (filters or {}).items())

    async def select(self, table, columns="*", filters=None, order=None, limit=None, offset=None, single=False):
        await self._enter("select", table)
        rows = [dict(r) for r in self.tables[table] if self._matches(r, filters)]
        if order:
            for part in reversed(order.split(",")):
                column, _, rest = part.partition(".")
                rows.sort(key=lambda r: (r.get(column) is None, r.get(column) or 0), reverse=rest.startswith("desc"))
        if offset:
            rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        if table == "cart_items" and "products(" in columns:
            for row in rows:
                row["products"] = next(
                    (dict(p) for p in self.tables["products"] if p["id"] == row["product_id"]), None
                )
        if single:
            if len(rows) != 1:
                raise PostgrestError(
                    "JSON object requested, multiple (or no) rows returned",
                    status=406, code="PGRST116",
                )
            return rows[0]
        return rows

    async def insert(self, table, values, single=False):
        await self._enter("insert", table)
        batch = values if isinstance(values, list) else [values]
        created = []
        for value in batch:
            row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **value}
            self.tables[table].append(row)
            created.append(dict(row))
        return created[0] if single else created

    async def update(self, table, values, filters):
        await self._enter("update", table)
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(values)
                updated.append(dict(row))
        return updated

    async def delete(self, table, filters):
        await self._enter("delete", table)
        kept, deleted = [], []
        for row in self.tables[table]:
            (deleted if self._matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return deleted


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.fail_writes = False

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail_writes:
            raise RedisError("OOM command not allowed")
        self.store[key] = value
        return True

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


# --- Fixtures ---

PRODUCT_ROWS = [
    {
        "id": 1, "name": "Dates", "name_ar": "تمر", "description": "Siwa dates",
        "description_ar": "تمر سيوي", "price": 50.0, "image_url": "https://img/1.jpg",
        "rating": 4.5, "stock_quantity": 10, "available": True, "category": "food",
        "featured": True, "created_at": "2025-01-02T00:00:00+00:00",
    },
    {
        "id": 2, "name": "Honey", "name_ar": "عسل", "description": None,
        "description_ar": "عسل نحل", "price": 120.5, "image_url": None,
        "rating": None, "stock_quantity": 3, "available": True, "category": "food",
        "featured": False, "created_at": "2025-01-03T00:00:00+00:00",
    },
    {
        "id": 3, "name": "Old stock", "name_ar": "منتج قديم", "description": None,
        "description_ar": None, "price": 10.0, "image_url": None, "rating": None,
        "stock_quantity": 0, "available": False, "category": "misc",
        "featured": False, "created_at": "2024-12-01T00:00:00+00:00",
    },
]


@pytest.fixture
def fake_client():
    client = FakeSupabase()
    client.tables["products"] = [dict(p) for p in PRODUCT_ROWS]
    return client


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def guest_store(fake_redis):
    return GuestCartStore(fake_redis)


@pytest.fixture
def locks():
    return KeyedLocks()


@pytest.fixture
def test_user():
    return AuthUser(id=TEST_USER_ID, email=TEST_EMAIL)


@pytest.fixture
def dates():
    return Product.model_validate(PRODUCT_ROWS[0])


@pytest.fixture
def honey():
    return Product.model_validate(PRODUCT_ROWS[1])


@pytest.fixture
def guest_cart(fake_client, guest_store, locks):
    return CartSession(fake_client, guest_store, guest_id="a" * 32, locks=locks)


@pytest.fixture
def user_cart(fake_client, guest_store, locks, test_user):
    return CartSession(fake_client, guest_store, user=test_user, locks=locks)


@pytest_asyncio.fixture
async def client(fake_client, fake_redis):
    app.dependency_overrides[get_supabase_client] = lambda: fake_client
    app.dependency_overrides[get_redis_client] = lambda: fake_redis
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="https://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_cookies():
    return {"Cookie": f"sb-access-token={VALID_TOKEN}"}
