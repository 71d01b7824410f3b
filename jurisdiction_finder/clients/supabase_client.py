"""
Singleton Supabase REST (PostgREST) client on top of aiohttp.
"""
import asyncio
from aiohttp import ClientSession, ClientTimeout, ClientError
from typing import Any, Dict, List, Optional
from loguru import logger

from jurisdiction_finder.config import SUPABASE_URL, SUPABASE_ANON_KEY
from jurisdiction_finder.errors import ConfigurationMissing, HistoryStoreError


class SupabaseClient:
    """
    Singleton client for the Supabase table API.
    Each method maps to one PostgREST request and returns the decoded rows.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not SupabaseClient._initialized:
            if not SUPABASE_URL or not SUPABASE_ANON_KEY:
                raise ConfigurationMissing("Supabaseの設定が不足しています")
            self.api_key = SUPABASE_ANON_KEY
            self.base_url = f"{SUPABASE_URL.rstrip('/')}/rest/v1"
            self._session: Optional[ClientSession] = None
            SupabaseClient._initialized = True

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=30))
        return self._session

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Send one request to `/rest/v1/{table}`.

        Args:
            method: HTTP method.
            table: Table name.
            params: PostgREST query parameters, e.g. {"id": "eq.abc"}.
            json_body: JSON payload for POST/PATCH.
            prefer: Value of the Prefer header, e.g. "return=representation".

        Returns:
            Decoded rows; empty when the response has no body.

        Raises:
            HistoryStoreError: On transport failure, timeout, non-2xx status or undecodable body.
        """
        session = await self._get_session()
        url = f"{self.base_url}/{table}"
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(prefer),
            ) as resp:
                if resp.status >= 400:
                    detail = await resp.text()
                    raise HistoryStoreError(f"Supabase {method} {table} failed with {resp.status}: {detail}")
                if resp.status == 204:
                    return []
                data = await resp.json(content_type=None)
                if data is None:
                    return []
                return data if isinstance(data, list) else [data]
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError: body that is not JSON
            logger.debug(f"⚠️ Supabase {method} request failed: {e}")
            raise HistoryStoreError(f"Supabase {method} {table} failed: {e}") from e

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
