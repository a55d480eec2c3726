"""
Arrow Options SDK - API Client

Thin async client that submits prepared orders to the Arrow API.
No retry or backoff: a failed request surfaces as APIError.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .arrow_types import OrderType, PreparedOrder
from .exceptions import APIError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0

ORDER_ENDPOINTS = {
    OrderType.LONG_OPEN: "/open-long-position",
    OrderType.LONG_CLOSE: "/close-long-position",
    OrderType.SHORT_OPEN: "/open-short-position",
    OrderType.SHORT_CLOSE: "/close-short-position",
}

LONG_ORDER_TYPES = (OrderType.LONG_OPEN, OrderType.LONG_CLOSE)
SHORT_ORDER_TYPES = (OrderType.SHORT_OPEN, OrderType.SHORT_CLOSE)


class ArrowAPIClient:
    """
    Arrow REST API client.

    Usage:
        async with ArrowAPIClient(config.api_url) as api:
            estimate = await api.estimate_gas(prepared)
            result = await api.submit_long_order(prepared)
    """

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = DEFAULT_TIMEOUT_S):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "ArrowAPIClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def _post(self, endpoint: str, params: List[Dict[str, Any]]) -> Any:
        url = f"{self.base_url}{endpoint}"
        log.debug(f"POST {url} ({len(params)} orders)")
        try:
            response = await self.client.post(url, json={"params": params})
        except httpx.HTTPError as e:
            raise APIError(f"Request to {endpoint} failed: {e}") from e

        if response.status_code >= 400:
            raise APIError(f"{endpoint} rejected the request",
                           status_code=response.status_code, body=response.text)
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"{endpoint} returned invalid JSON",
                           status_code=response.status_code, body=response.text) from e

    @staticmethod
    def _order_type(prepared_orders: Sequence[PreparedOrder],
                    allowed: Sequence[OrderType]) -> OrderType:
        if not prepared_orders:
            raise ValueError("No prepared orders to submit")
        order_types = {prepared.order_type for prepared in prepared_orders}
        if len(order_types) != 1:
            raise ValueError(f"A submission must share one order type, got "
                             f"{sorted(t.name for t in order_types)}")
        order_type = order_types.pop()
        if order_type not in allowed:
            raise ValueError(f"{order_type.name} orders cannot be submitted here")
        return order_type

    async def estimate_gas(self, prepared_orders: Sequence[PreparedOrder]) -> Dict[str, Any]:
        """
        Estimated gas and AVAX needed to execute the orders.

        Returns:
            {"estimated_gas": ..., "avax_needed": ...}
        """
        if not prepared_orders:
            raise ValueError("No prepared orders to estimate")
        params = []
        for prepared in prepared_orders:
            entry = prepared.to_submission_params()
            entry.pop("view")
            entry["order_type"] = prepared.order_type.value
            params.append(entry)
        data = await self._post("/estimate-gas", params)
        return {
            "estimated_gas": data.get("estimated_gas"),
            "avax_needed": data.get("avax_needed"),
        }

    async def submit_long_order(self, prepared_orders: Sequence[PreparedOrder],
                                trading_view: Optional[str] = None) -> Any:
        """Submit LONG_OPEN or LONG_CLOSE orders; returns the API response body."""
        order_type = self._order_type(prepared_orders, LONG_ORDER_TYPES)
        params = [prepared.to_submission_params(trading_view) for prepared in prepared_orders]
        result = await self._post(ORDER_ENDPOINTS[order_type], params)
        log.info(f"Submitted {len(params)} {order_type.name} order(s)")
        return result

    async def submit_short_order(self, prepared_orders: Sequence[PreparedOrder],
                                 trading_view: Optional[str] = None) -> Any:
        """Submit SHORT_OPEN or SHORT_CLOSE orders; returns the API response body."""
        order_type = self._order_type(prepared_orders, SHORT_ORDER_TYPES)
        params = [prepared.to_submission_params(trading_view) for prepared in prepared_orders]
        result = await self._post(ORDER_ENDPOINTS[order_type], params)
        log.info(f"Submitted {len(params)} {order_type.name} order(s)")
        return result
