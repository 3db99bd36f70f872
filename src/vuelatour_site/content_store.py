# src/vuelatour_site/content_store.py

import typing
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import httpx
from pydantic import ValidationError

from .config import settings
from .errors import StoreUnavailable
from .records import Record

RecordT = TypeVar("RecordT", bound=Record)


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(
        filters: Optional[Dict[str, Any]] = None,
        exclude: Optional[Dict[str, Any]] = None,
        not_empty: Sequence[str] = (),
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
) -> List[Tuple[str, str]]:
    """
    Translates simple filters into REST query parameters.
    A column may appear more than once (e.g. `not_empty`), so a list of pairs is returned.
    """
    params: List[Tuple[str, str]] = [("select", "*")]
    for column, value in (filters or {}).items():
        if value is None:
            params.append((column, "is.null"))
        else:
            params.append((column, f"eq.{_encode_value(value)}"))
    for column, value in (exclude or {}).items():
        params.append((column, f"neq.{_encode_value(value)}"))
    for column in not_empty:
        params.append((column, "not.is.null"))
        params.append((column, "neq."))
    if order:
        params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
    if limit is not None:
        params.append(("limit", str(limit)))
    return params


class ContentStore:
    """
    Read-only client for the hosted database REST endpoint.

    Every public method degrades instead of raising: a transport error, a non-2xx
    answer or an unparseable body is logged and mapped to `None` or `[]`, so a
    page built on top of it always renders.
    """

    def __init__(
            self,
            base_url: str,
            api_key: str,
            client: Optional[httpx.AsyncClient] = None,
            timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    async def __aenter__(self) -> "ContentStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _fetch(self, table: str, params: List[Tuple[str, str]]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{table}"
        try:
            response = await self.client.get(url, params=params, headers=self.headers)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise StoreUnavailable(
                f"{table}: backend answered {e.response.status_code}",
                status_code=e.response.status_code,
            )
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"{table}: {e.__class__.__name__}: {e}")
        except ValueError as e:
            raise StoreUnavailable(f"{table}: response body is not JSON ({e})")
        if not isinstance(body, list):
            raise StoreUnavailable(f"{table}: expected a list of rows, got {type(body).__name__}")
        return body

    @staticmethod
    def _parse(table: str, model: Type[RecordT], rows: List[Dict[str, Any]]) -> List[RecordT]:
        parsed: List[RecordT] = []
        for row in rows:
            try:
                parsed.append(model.model_validate(row))
            except ValidationError as e:
                print(f"STORE: Dropping invalid {table} row: {e.error_count()} error(s): {e.errors()[0]['msg']}")
        return parsed

    async def get_one(
            self,
            table: str,
            model: Type[RecordT],
            filters: Dict[str, Any],
            exclude: Optional[Dict[str, Any]] = None,
    ) -> Optional[RecordT]:
        """Point lookup by slug or key. Returns None when the row is absent or the backend fails."""
        params = build_query(filters=filters, exclude=exclude, limit=1)
        try:
            rows = await self._fetch(table, params)
        except StoreUnavailable as e:
            print(f"STORE: get_one degraded to None. {e.detail}")
            return None
        records = self._parse(table, model, rows)
        return records[0] if records else None

    async def list(
            self,
            table: str,
            model: Type[RecordT],
            filters: Optional[Dict[str, Any]] = None,
            exclude: Optional[Dict[str, Any]] = None,
            order: Optional[str] = None,
            descending: bool = False,
            limit: Optional[int] = None,
            not_empty: Sequence[str] = (),
    ) -> typing.List[RecordT]:
        params = build_query(
            filters=filters,
            exclude=exclude,
            not_empty=not_empty,
            order=order,
            descending=descending,
            limit=limit,
        )
        try:
            rows = await self._fetch(table, params)
        except StoreUnavailable as e:
            print(f"STORE: list degraded to []. {e.detail}")
            return []
        return self._parse(table, model, rows)


async def get_content_store() -> typing.AsyncIterator[ContentStore]:
    """FastAPI dependency: one client per request, closed when the response is done."""
    store = ContentStore(
        base_url=settings.REST_URL,
        api_key=settings.SUPABASE_ANON_KEY,
        timeout=settings.STORE_TIMEOUT_SECONDS,
    )
    try:
        yield store
    finally:
        await store.aclose()
