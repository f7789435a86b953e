"""Jupiter API calls: validate request, take a token, call, check the response.

Each call:
  1. Validates the request model (pydantic ValidationError propagates)
  2. Waits on the limiter, when one is given
  3. Issues the HTTP call; non-2xx raises httpx.HTTPStatusError
  4. Validates the payload; logs on mismatch and raises only in strict mode
  5. Returns the raw JSON payload (or the body text when it is not JSON)
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

import httpx
from pydantic import BaseModel, ValidationError

from jup_common.errors import InvalidResponseError
from jup_common.rate_limit import TokenBucketLimiter
from jup_common.schemas import (
    Endpoint,
    JupiterApi,
    QuoteRequest,
    SwapRequest,
    TokenSearchRequest,
)
from jup_common.validation import (
    format_validation_error,
    log_undecodable_body,
    log_validation_errors,
)

RequestLike = Union[BaseModel, Mapping[str, Any]]


def make_http_client(settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.JUPITER_BASE_URL,
        timeout=settings.JUPITER_TIMEOUT_S,
        headers={"User-Agent": settings.JUPITER_USER_AGENT, "Accept": "application/json"},
    )


def _validate_request(endpoint: Endpoint, request: RequestLike) -> Dict[str, Any]:
    model = endpoint.request_model
    if not isinstance(request, model):
        request = model.model_validate(request)
    payload = request.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(request, SwapRequest):
        # /swap expects the quote exactly as issued, explicit nulls included
        payload["quoteResponse"] = request.quote_response.model_dump(
            by_alias=True, exclude_unset=True, mode="json",
        )
    return payload


def _decode_response(endpoint: Endpoint, r: httpx.Response, *, is_strict: bool) -> Any:
    try:
        data = r.json()
    except ValueError as exc:
        log_undecodable_body(exc, r.text)
        if is_strict:
            raise InvalidResponseError(
                "Invalid response from Jupiter API",
                errors=[{"path": "root", "message": f"body is not valid JSON: {exc}"}],
                data=r.text,
            ) from exc
        return r.text
    return _check_response(endpoint, data, is_strict=is_strict)


def _check_response(endpoint: Endpoint, data: Any, *, is_strict: bool) -> Any:
    try:
        endpoint.response_schema.validate_python(data)
    except ValidationError as exc:
        log_validation_errors(exc, data)
        if is_strict:
            raise InvalidResponseError(
                "Invalid response from Jupiter API",
                errors=format_validation_error(exc),
                data=data,
            ) from exc
    return data


async def _call(
    http: httpx.AsyncClient,
    endpoint: Endpoint,
    request: RequestLike,
    *,
    limiter: Optional[TokenBucketLimiter],
    is_strict: bool,
    timeout: Optional[float],
) -> Any:
    payload = _validate_request(endpoint, request)

    if limiter is not None:
        await limiter.acquire()

    kwargs: Dict[str, Any] = {}
    if timeout is not None:
        kwargs["timeout"] = timeout

    if endpoint.method == "GET":
        r = await http.get(endpoint.route, params=payload, **kwargs)
    else:
        r = await http.post(endpoint.route, json=payload, **kwargs)
    r.raise_for_status()

    return _decode_response(endpoint, r, is_strict=is_strict)


async def get_token_search(
    http: httpx.AsyncClient,
    request: Union[TokenSearchRequest, Mapping[str, Any]],
    *,
    limiter: Optional[TokenBucketLimiter] = None,
    is_strict: bool = False,
    timeout: Optional[float] = None,
) -> Any:
    """Search tokens by name, symbol or mint. Returns a list of token dicts."""
    return await _call(
        http, JupiterApi.TokenSearch, request,
        limiter=limiter, is_strict=is_strict, timeout=timeout,
    )


async def get_quote(
    http: httpx.AsyncClient,
    request: Union[QuoteRequest, Mapping[str, Any]],
    *,
    limiter: Optional[TokenBucketLimiter] = None,
    is_strict: bool = False,
    timeout: Optional[float] = None,
) -> Any:
    """Best-route quote for swapping ``amount`` of inputMint into outputMint."""
    return await _call(
        http, JupiterApi.Quote, request,
        limiter=limiter, is_strict=is_strict, timeout=timeout,
    )


async def post_swap(
    http: httpx.AsyncClient,
    request: Union[SwapRequest, Mapping[str, Any]],
    *,
    limiter: Optional[TokenBucketLimiter] = None,
    is_strict: bool = False,
    timeout: Optional[float] = None,
) -> Any:
    """Build the serialized swap transaction for a previously fetched quote.

    The returned ``swapTransaction`` is opaque base64; it is not decoded here.
    """
    return await _call(
        http, JupiterApi.Swap, request,
        limiter=limiter, is_strict=is_strict, timeout=timeout,
    )
