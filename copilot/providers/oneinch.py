"""
1inch Swap API client.

Wraps the aggregation endpoints used by the copilot:

- ``GET /swap/v6.0/{chain}/quote``  price an exact-input swap
- ``GET /swap/v6.0/{chain}/swap``   build the router calldata for a wallet

All failures surface as the validation error types in ``core.errors`` so the
validator and execution tracker can tag them without inspecting httpx.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from ..core.errors import (
    ConfigurationMissingError,
    ErrorContext,
    UnsupportedPairError,
    UpstreamUnavailableError,
)
from .base import SwapAggregatorProvider

logger = logging.getLogger(__name__)

API_VERSION = "v6.0"

# Phrases in 1inch 400 responses that mean the pair cannot be routed
_UNROUTABLE_HINTS = ("insufficient liquidity", "token not supported", "not supported", "invalid token")


@dataclass
class OneInchQuote:
    """Exact-input quote in base units."""

    src: str
    dst: str
    src_amount: int
    dst_amount: int
    gas: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OneInchSwap:
    """Router transaction ready for a wallet to sign."""

    to: str
    data: str
    value: str
    gas: Optional[int]
    src_amount: int
    dst_amount: int
    raw: Dict[str, Any] = field(default_factory=dict)


def _parse_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class OneInchProvider(SwapAggregatorProvider):
    """Async client for the 1inch developer portal swap API."""

    name = "1inch"
    timeout_s = 15

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.1inch.dev",
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._transport = transport

    async def ready(self) -> bool:
        return bool(self.api_key)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unconfigured", "reason": "ONEINCH_API_KEY not set"}
        return {"status": "configured", "base_url": self.base_url}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_s,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
        )

    async def _get(self, chain_id: int, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise ConfigurationMissingError(
                "1inch API key is not configured",
                ErrorContext(provider=self.name, chain_id=chain_id),
            )

        path = f"/swap/{API_VERSION}/{chain_id}/{endpoint}"
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("1inch %s timed out for chain %s", endpoint, chain_id)
            raise UpstreamUnavailableError(
                f"1inch {endpoint} timed out after {self.timeout_s}s",
                ErrorContext(provider=self.name, chain_id=chain_id, upstream_detail=str(exc)),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise self._status_error(endpoint, chain_id, exc.response) from exc
        except httpx.RequestError as exc:
            logger.warning("1inch %s request failed: %s", endpoint, exc)
            raise UpstreamUnavailableError(
                f"Could not reach 1inch {endpoint} endpoint",
                ErrorContext(provider=self.name, chain_id=chain_id, upstream_detail=str(exc)),
            ) from exc
        except ValueError as exc:
            raise UpstreamUnavailableError(
                f"1inch {endpoint} returned a non-JSON body",
                ErrorContext(provider=self.name, chain_id=chain_id, upstream_detail=str(exc)),
            ) from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailableError(
                f"1inch {endpoint} returned an unexpected payload",
                ErrorContext(provider=self.name, chain_id=chain_id),
            )
        return data

    def _status_error(self, endpoint: str, chain_id: int, response: httpx.Response):
        detail = response.text[:500]
        try:
            body = response.json()
            if isinstance(body, dict):
                detail = str(body.get("description") or body.get("error") or detail)
        except ValueError:
            pass

        context = ErrorContext(
            provider=self.name,
            chain_id=chain_id,
            status_code=response.status_code,
            upstream_detail=detail,
        )
        logger.warning("1inch %s returned HTTP %s: %s", endpoint, response.status_code, detail)

        if response.status_code in (401, 403):
            return ConfigurationMissingError("1inch rejected the configured API key", context)
        if response.status_code == 400 and any(hint in detail.lower() for hint in _UNROUTABLE_HINTS):
            return UnsupportedPairError(f"1inch cannot route this pair: {detail}", context)
        return UpstreamUnavailableError(f"1inch {endpoint} failed with HTTP {response.status_code}", context)

    async def get_quote(self, chain_id: int, src: str, dst: str, amount: int) -> OneInchQuote:
        """
        Price an exact-input swap.

        Args:
            chain_id: EVM chain id
            src: Source token address (native placeholder for the gas token)
            dst: Destination token address
            amount: Input amount in base units

        Returns:
            OneInchQuote with the output amount and gas estimate in units
        """
        data = await self._get(
            chain_id,
            "quote",
            {"src": src, "dst": dst, "amount": str(amount), "includeGas": "true"},
        )
        dst_amount = _parse_int(data.get("dstAmount") or data.get("toAmount"))
        if dst_amount is None:
            raise UpstreamUnavailableError(
                "1inch quote is missing the output amount",
                ErrorContext(provider=self.name, chain_id=chain_id, details={"keys": sorted(data)}),
            )
        return OneInchQuote(
            src=src,
            dst=dst,
            src_amount=amount,
            dst_amount=dst_amount,
            gas=_parse_int(data.get("gas") or data.get("estimatedGas")),
            raw=data,
        )

    async def build_swap(
        self,
        chain_id: int,
        src: str,
        dst: str,
        amount: int,
        from_address: str,
        slippage_percent: float,
    ) -> OneInchSwap:
        """Build router calldata for ``from_address``. Gas estimation is left to the wallet."""
        data = await self._get(
            chain_id,
            "swap",
            {
                "src": src,
                "dst": dst,
                "amount": str(amount),
                "from": from_address,
                "slippage": str(slippage_percent),
                "disableEstimate": "true",
            },
        )
        tx = data.get("tx")
        if not isinstance(tx, dict) or not tx.get("to") or not tx.get("data"):
            raise UpstreamUnavailableError(
                "1inch swap response has no transaction",
                ErrorContext(provider=self.name, chain_id=chain_id),
            )
        return OneInchSwap(
            to=str(tx["to"]),
            data=str(tx["data"]),
            value=str(tx.get("value") or "0"),
            gas=_parse_int(tx.get("gas")),
            src_amount=amount,
            dst_amount=_parse_int(data.get("dstAmount") or data.get("toAmount")) or 0,
            raw=data,
        )


_oneinch_provider: Optional[OneInchProvider] = None


def get_oneinch_provider() -> OneInchProvider:
    """Get the singleton 1inch provider built from settings."""
    global _oneinch_provider
    if _oneinch_provider is None:
        from ..config import settings

        _oneinch_provider = OneInchProvider(
            api_key=settings.oneinch_api_key,
            base_url=settings.oneinch_base_url,
            timeout_s=settings.quote_timeout_seconds,
        )
    return _oneinch_provider


__all__ = [
    "OneInchProvider",
    "OneInchQuote",
    "OneInchSwap",
    "get_oneinch_provider",
]
