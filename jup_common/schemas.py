"""Request/response models for the Jupiter lite API.

Request models validate what we send; response schemas only check what comes
back. Response models keep unknown fields so a quote can be echoed verbatim
into ``/swap``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer


class _Wire(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class TokenData(_Wire):
    id: str  # mint address
    name: str
    symbol: str
    icon: Optional[str] = None


class TokenSearchRequest(BaseModel):
    query: str = Field(..., min_length=1)


class QuoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    input_mint: str = Field(..., alias="inputMint", min_length=1)
    output_mint: str = Field(..., alias="outputMint", min_length=1)
    amount: int = Field(..., gt=0)  # raw units (lamports etc.)
    slippage_bps: Optional[int] = Field(None, alias="slippageBps", ge=0, le=10_000)
    swap_mode: Optional[Literal["ExactIn", "ExactOut"]] = Field(None, alias="swapMode")
    only_direct_routes: Optional[bool] = Field(None, alias="onlyDirectRoutes")
    restrict_intermediate_tokens: Optional[bool] = Field(None, alias="restrictIntermediateTokens")
    max_accounts: Optional[int] = Field(None, alias="maxAccounts", gt=0)
    platform_fee_bps: Optional[int] = Field(None, alias="platformFeeBps", ge=0)

    @field_serializer("amount")
    def _amount_as_str(self, v: int) -> str:
        return str(v)


class SwapInfo(_Wire):
    amm_key: str = Field(..., alias="ammKey")
    label: Optional[str] = None
    input_mint: str = Field(..., alias="inputMint")
    output_mint: str = Field(..., alias="outputMint")
    in_amount: str = Field(..., alias="inAmount")
    out_amount: str = Field(..., alias="outAmount")
    fee_amount: Optional[str] = Field(None, alias="feeAmount")
    fee_mint: Optional[str] = Field(None, alias="feeMint")


class RoutePlanStep(_Wire):
    swap_info: SwapInfo = Field(..., alias="swapInfo")
    percent: int


class QuoteResponse(_Wire):
    input_mint: str = Field(..., alias="inputMint")
    in_amount: str = Field(..., alias="inAmount")
    output_mint: str = Field(..., alias="outputMint")
    out_amount: str = Field(..., alias="outAmount")
    other_amount_threshold: str = Field(..., alias="otherAmountThreshold")
    swap_mode: Literal["ExactIn", "ExactOut"] = Field(..., alias="swapMode")
    slippage_bps: int = Field(..., alias="slippageBps")
    price_impact_pct: str = Field(..., alias="priceImpactPct")
    route_plan: List[RoutePlanStep] = Field(..., alias="routePlan")
    platform_fee: Optional[Any] = Field(None, alias="platformFee")
    context_slot: Optional[int] = Field(None, alias="contextSlot")
    time_taken: Optional[float] = Field(None, alias="timeTaken")


class SwapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    user_public_key: str = Field(..., alias="userPublicKey", min_length=1)
    quote_response: QuoteResponse = Field(..., alias="quoteResponse")
    wrap_and_unwrap_sol: Optional[bool] = Field(None, alias="wrapAndUnwrapSol")
    dynamic_compute_unit_limit: Optional[bool] = Field(None, alias="dynamicComputeUnitLimit")
    prioritization_fee_lamports: Optional[Any] = Field(None, alias="prioritizationFeeLamports")
    as_legacy_transaction: Optional[bool] = Field(None, alias="asLegacyTransaction")


class SwapResponse(_Wire):
    # base64 serialized transaction; signing and sending is the caller's job
    swap_transaction: str = Field(..., alias="swapTransaction")
    last_valid_block_height: int = Field(..., alias="lastValidBlockHeight")
    prioritization_fee_lamports: Optional[int] = Field(None, alias="prioritizationFeeLamports")


@dataclass(frozen=True)
class Endpoint:
    method: Literal["GET", "POST"]
    route: str
    request_model: Type[BaseModel]
    response_schema: TypeAdapter


class JupiterApi:
    """Endpoints, methods and schemas of the Jupiter API."""

    TokenSearch = Endpoint(
        method="GET",
        route="/tokens/v2/search",
        request_model=TokenSearchRequest,
        response_schema=TypeAdapter(List[TokenData]),
    )
    Quote = Endpoint(
        method="GET",
        route="/swap/v1/quote",
        request_model=QuoteRequest,
        response_schema=TypeAdapter(QuoteResponse),
    )
    Swap = Endpoint(
        method="POST",
        route="/swap/v1/swap",
        request_model=SwapRequest,
        response_schema=TypeAdapter(SwapResponse),
    )
