"""httpx client for one resource endpoint of the JSON API."""

from __future__ import annotations

import httpx


class ClientRequestError(Exception):
    """A request failed, either on the wire or with a failure envelope."""


class ResourceClient:
    def __init__(self, http: httpx.AsyncClient, endpoint: str):
        self.http = http
        self.endpoint = endpoint

    async def _call(self, method: str, params: dict | None = None, body: dict | None = None):
        try:
            resp = await self.http.request(method, self.endpoint, params=params, json=body)
        except httpx.HTTPError as exc:
            raise ClientRequestError(str(exc) or exc.__class__.__name__) from exc

        try:
            payload = resp.json()
        except ValueError:
            raise ClientRequestError(f"Unexpected response ({resp.status_code})") from None

        if not isinstance(payload, dict) or not payload.get("success"):
            error = payload.get("error") if isinstance(payload, dict) else None
            raise ClientRequestError(error or "Unknown error")
        return payload.get("data")

    async def meta(self) -> dict:
        return await self._call("GET", params={"action": "meta"})

    async def list(self) -> list[dict]:
        data = await self._call("GET", params={"action": "list"})
        if not isinstance(data, list):
            raise ClientRequestError("Unknown error")
        return data

    async def get(self, record_id) -> dict:
        return await self._call("GET", params={"action": "get", "id": record_id})

    async def foreign_key_options(self, table: str, value_field: str, text_field: str) -> list[dict]:
        return await self._call("GET", params={
            "action": "foreign_key_options",
            "table": table,
            "value_field": value_field,
            "text_field": text_field,
        })

    async def create(self, values: dict) -> dict:
        return await self._call("POST", body=values)

    async def update(self, values: dict) -> dict:
        return await self._call("PUT", body=values)

    async def delete(self, primary_key: str, record_id) -> dict:
        return await self._call("DELETE", body={primary_key: record_id})
