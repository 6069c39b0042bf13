"""USDA FoodData Central API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from nomnom.domain.errors import StoreUnavailableError


class FdcClient(Protocol):
    """Interface for FoodData Central API interactions."""

    async def search_foods(
        self,
        query: str,
        page_size: int = 10,
        data_types: list[str] | None = None,
    ) -> dict[str, object]:
        """Search foods by query and return raw API data."""

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Fetch a food by FDC id and return raw API data."""


@dataclass
class HttpxFdcClient(FdcClient):
    """HTTPX-backed FDC client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxFdcClient":
        """Create an FDC client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_foods(
        self,
        query: str,
        page_size: int = 10,
        data_types: list[str] | None = None,
    ) -> dict[str, object]:
        """Search foods by query, optionally restricted to FDC data types."""
        payload: dict[str, object] = {"query": query, "pageSize": page_size}
        if data_types:
            payload["dataType"] = data_types
        return await self._request(
            "POST", f"{self.base_url}/foods/search", json=payload
        )

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Fetch a food by FDC id."""
        return await self._request("GET", f"{self.base_url}/food/{fdc_id}")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(
        self, method: str, url: str, json: dict[str, object] | None = None
    ) -> dict[str, object]:
        try:
            response = await self.http_client.request(
                method,
                url,
                params={"api_key": self.api_key},
                json=json,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise StoreUnavailableError(
                f"USDA FoodData Central request failed: {exc}"
            ) from exc
