"""
core/jupiter_connector.py
Jupiter connector: one HTTP client + one limiter pool per process.

Bulk lookups (token search) go through the low-priority pool so they can
never starve quotes and swaps, which default to the high-priority pool.
"""
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

import httpx
from loguru import logger

from config.config import JupiterConfig, cfg
from jup_common.errors import ConnectorNotReadyError
from jup_common.rate_limit import (
    LimiterPool,
    RateLimiterPoolConfig,
    create_rate_limiters_from_config,
)
from jup_common.requests import get_quote, get_token_search, make_http_client, post_swap
from jup_common.schemas import QuoteRequest, SwapRequest, TokenSearchRequest

Priority = Literal["high", "low"]


class JupiterConnector:
    """Rate-limited access to token search, quotes and swap building."""

    def __init__(
        self,
        settings: JupiterConfig = cfg,
        pool: Optional[LimiterPool] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings
        self._pool = pool or create_rate_limiters_from_config(
            RateLimiterPoolConfig.from_settings(settings),
            detailed_logging=settings.JUPITER_DETAILED_LOGGING,
        )
        self._http: Optional[httpx.AsyncClient] = http
        self._owns_http = http is None

    # ── Connection ───────────────────────────────────────
    async def connect(self) -> None:
        if self._http is None:
            self._http = make_http_client(self._settings)
            self._owns_http = True
        logger.info(
            f"🔌 Jupiter @ {self._settings.JUPITER_BASE_URL} | "
            f"high={self._pool.high.capacity:g} low={self._pool.low.capacity:g} "
            f"per {self._settings.JUPITER_PERIOD_S:g}s"
        )

    async def disconnect(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            logger.info("🔌 Jupiter disconnected")
        self._http = None

    async def __aenter__(self) -> "JupiterConnector":
        await self.connect()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.disconnect()

    # ── Properties ───────────────────────────────────────
    @property
    def pool(self) -> LimiterPool:
        return self._pool

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            raise ConnectorNotReadyError("JupiterConnector.connect() has not been called")
        return self._http

    def _strict(self, is_strict: Optional[bool]) -> bool:
        return self._settings.JUPITER_STRICT if is_strict is None else is_strict

    # ── API ──────────────────────────────────────────────
    async def search_tokens(
        self,
        query: str,
        *,
        priority: Priority = "low",
        is_strict: Optional[bool] = None,
    ) -> Any:
        return await get_token_search(
            self._client(),
            TokenSearchRequest(query=query),
            limiter=self._pool[priority],
            is_strict=self._strict(is_strict),
        )

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        *,
        slippage_bps: Optional[int] = None,
        priority: Priority = "high",
        is_strict: Optional[bool] = None,
        **extra: Any,
    ) -> Any:
        request = QuoteRequest(
            input_mint=input_mint,
            output_mint=output_mint,
            amount=amount,
            slippage_bps=slippage_bps,
            **extra,
        )
        return await get_quote(
            self._client(),
            request,
            limiter=self._pool[priority],
            is_strict=self._strict(is_strict),
        )

    async def build_swap(
        self,
        user_public_key: str,
        quote: Dict[str, Any],
        *,
        priority: Priority = "high",
        is_strict: Optional[bool] = None,
        **extra: Any,
    ) -> Any:
        request = SwapRequest(user_public_key=user_public_key, quote_response=quote, **extra)
        return await post_swap(
            self._client(),
            request,
            limiter=self._pool[priority],
            is_strict=self._strict(is_strict),
        )
