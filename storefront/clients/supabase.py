# storefront/clients/supabase.py

import logging
from typing import Any, Dict, List, Optional, Type, Union

import httpx

from storefront.core.config import settings
from storefront.schemas.user import AuthSession, AuthUser

logger = logging.getLogger(__name__)

# PostgREST code for "the result contains 0 rows" on a single-object request
NO_ROWS_CODE = "PGRST116"
SINGLE_OBJECT = "application/vnd.pgrst.object+json"

Row = Dict[str, Any]


class SupabaseError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


class AuthApiError(SupabaseError):
    """Error reported by the identity provider (bad credentials, expired token...)."""


class PostgrestError(SupabaseError):
    """Error reported by the data store."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message, status=status, code=code)
        self.details = details
        self.hint = hint

    @property
    def is_no_rows(self) -> bool:
        return self.code == NO_ROWS_CODE


def _error_from_response(error_cls: Type[SupabaseError], response: httpx.Response) -> SupabaseError:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    message = (
        payload.get("msg")
        or payload.get("message")
        or payload.get("error_description")
        or payload.get("error")
        or response.text
        or response.reason_phrase
    )
    code = payload.get("error_code") or payload.get("code")
    code = str(code) if code is not None else None

    if error_cls is PostgrestError:
        return PostgrestError(
            message, status=response.status_code, code=code,
            details=payload.get("details"), hint=payload.get("hint"),
        )
    return error_cls(message, status=response.status_code, code=code)


def _encode_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Turns {"user_id": "u1", "available": True} into PostgREST equality filters."""
    encoded = {}
    for column, value in (filters or {}).items():
        if value is None:
            encoded[column] = "is.null"
        elif isinstance(value, bool):
            encoded[column] = f"eq.{str(value).lower()}"
        else:
            encoded[column] = f"eq.{value}"
    return encoded


class AuthClient:
    """GoTrue endpoints used by the identity gateway."""

    def __init__(self, client: "SupabaseClient"):
        self._client = client

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        data = await self._client.auth_request(
            "POST", "token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return AuthSession.model_validate(data)

    async def get_user(self, jwt: str) -> AuthUser:
        data = await self._client.auth_request("GET", "user", jwt=jwt)
        return AuthUser.model_validate(data)

    async def admin_sign_out(self, jwt: str, scope: str = "global") -> None:
        """Revokes every refresh token of the session owning `jwt`."""
        await self._client.auth_request("POST", "logout", params={"scope": scope}, jwt=jwt)


class SupabaseClient:
    """
    Async client for the Supabase REST surface (auth + PostgREST).
    Authenticates with the service key. Every failure, HTTP or network,
    is raised as a SupabaseError subclass.
    """
    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        timeouts = httpx.Timeout(timeout, read=timeout * 3)
        self.async_client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"apikey": service_key, "Authorization": f"Bearer {service_key}"},
            timeout=timeouts,
            transport=transport,
        )
        self.auth = AuthClient(self)

    async def close(self) -> None:
        await self.async_client.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        error_cls: Type[SupabaseError],
        params: Optional[dict] = None,
        json: Any = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        try:
            response = await self.async_client.request(method, url, params=params, json=json, headers=headers)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            error = _error_from_response(error_cls, e.response)
            if isinstance(error, PostgrestError) and error.is_no_rows:
                logger.debug(f"No rows for {method} {e.request.url!r}")
            else:
                logger.error(f"HTTP error during {method} request to {e.request.url!r}: {e.response.text}")
            raise error from e
        except httpx.RequestError as e:
            logger.error(f"Network error during {method} request to {e.request.url!r}.", exc_info=True)
            raise error_cls(f"Network error: {e}") from e

    # --- Auth ---

    async def auth_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json: Any = None,
        jwt: Optional[str] = None,
    ) -> Optional[dict]:
        headers = {"Authorization": f"Bearer {jwt}"} if jwt else None
        response = await self._send(
            method, f"/auth/v1/{endpoint}", AuthApiError, params=params, json=json, headers=headers
        )
        if not response.content:
            return None
        return response.json()

    # --- PostgREST ---

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        single: bool = False,
    ) -> Union[List[Row], Row]:
        """
        SELECT with equality filters. `single=True` asks for exactly one row;
        zero rows then raises PostgrestError with code PGRST116.
        """
        params: Dict[str, Any] = {"select": columns, **_encode_filters(filters)}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        if offset:
            params["offset"] = offset
        headers = {"Accept": SINGLE_OBJECT} if single else None
        response = await self._send("GET", f"/rest/v1/{table}", PostgrestError, params=params, headers=headers)
        return response.json()

    async def insert(
        self, table: str, values: Union[Row, List[Row]], single: bool = False
    ) -> Union[List[Row], Row]:
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = SINGLE_OBJECT
        response = await self._send("POST", f"/rest/v1/{table}", PostgrestError, json=values, headers=headers)
        return response.json()

    async def update(
        self, table: str, values: Row, filters: Dict[str, Any]
    ) -> List[Row]:
        if not filters:
            raise ValueError("update without filters would touch the whole table")
        response = await self._send(
            "PATCH", f"/rest/v1/{table}", PostgrestError,
            params=_encode_filters(filters), json=values,
            headers={"Prefer": "return=representation"},
        )
        return response.json()

    async def delete(self, table: str, filters: Dict[str, Any]) -> List[Row]:
        if not filters:
            raise ValueError("delete without filters would touch the whole table")
        response = await self._send(
            "DELETE", f"/rest/v1/{table}", PostgrestError,
            params=_encode_filters(filters),
            headers={"Prefer": "return=representation"},
        )
        return response.json()


# Shared instance
supabase_client = SupabaseClient(
    base_url=settings.SUPABASE_URL,
    service_key=settings.SUPABASE_SERVICE_KEY,
    timeout=settings.SUPABASE_TIMEOUT_SECONDS,
)

async def get_supabase_client() -> SupabaseClient:
    """
    Dependency returning the shared Supabase client.
    """
    return supabase_client
