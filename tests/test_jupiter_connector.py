"""Tests for the connector, settings and CLI wiring."""

import json

import httpx
import pytest

import main
from config.config import JupiterConfig
from core.jupiter_connector import JupiterConnector
from jup_common.errors import ConnectorNotReadyError, InvalidResponseError
from jup_common.rate_limit import RateLimiterPoolConfig, create_rate_limiters

SOL = "So11111111111111111111111111111111111111112"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
TOKENS = [{"id": USDC, "name": "USD Coin", "symbol": "USDC"}]


def settings(**over):
    return JupiterConfig(_env_file=None, **over)


def mock_http(payload, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, json=payload)
    return httpx.AsyncClient(base_url="https://lite-api.jup.ag", transport=httpx.MockTransport(handler))


# ──── Settings ────

def test_settings_defaults():
    s = settings()
    assert s.JUPITER_BASE_URL == "https://lite-api.jup.ag"
    assert s.JUPITER_TOKENS_PER_PERIOD == 60
    assert s.JUPITER_PERIOD_S == 60
    assert s.requests_per_minute == pytest.approx(60)
    assert s.JUPITER_STRICT is False


def test_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("JUPITER_TOKENS_PER_PERIOD", "500")
    monkeypatch.setenv("JUPITER_PERIOD_S", "10")
    monkeypatch.setenv("JUPITER_HIGH_PRIORITY_QUOTA", "400")
    monkeypatch.setenv("JUPITER_STRICT", "true")
    s = settings()
    assert s.requests_per_minute == pytest.approx(3000)
    assert s.JUPITER_STRICT is True

    pool_cfg = RateLimiterPoolConfig.from_settings(s)
    assert pool_cfg == RateLimiterPoolConfig(
        high_priority_quota=400, low_priority_quota=15, period_in_seconds=10,
    )


def test_settings_reject_non_positive_period(monkeypatch):
    monkeypatch.setenv("JUPITER_PERIOD_S", "0")
    with pytest.raises(ValueError):
        settings()


@pytest.mark.parametrize("name", ["JUPITER_HIGH_PRIORITY_QUOTA", "JUPITER_LOW_PRIORITY_QUOTA", "JUPITER_TOKENS_PER_PERIOD"])
def test_settings_reject_fractional_quota(monkeypatch, name):
    monkeypatch.setenv(name, "0.5")
    with pytest.raises(ValueError):
        settings()


# ──── Connector ────

@pytest.mark.asyncio
async def test_pool_built_from_settings():
    conn = JupiterConnector(settings(JUPITER_HIGH_PRIORITY_QUOTA=7, JUPITER_LOW_PRIORITY_QUOTA=3))
    assert conn.pool.high.capacity == 7
    assert conn.pool.low.capacity == 3


@pytest.mark.asyncio
async def test_not_connected_raises():
    conn = JupiterConnector(settings())
    with pytest.raises(ConnectorNotReadyError):
        await conn.search_tokens("USDC")


@pytest.mark.asyncio
async def test_search_uses_low_priority_pool():
    pool = create_rate_limiters(5, 5, 60)
    seen = []
    async with JupiterConnector(settings(), pool=pool, http=mock_http(TOKENS, seen)) as conn:
        result = await conn.search_tokens("USDC")

    assert result == TOKENS
    assert seen[0].url.path == "/tokens/v2/search"
    assert pool.low.available_tokens == pytest.approx(4, abs=1e-3)
    assert pool.high.available_tokens == 5


@pytest.mark.asyncio
async def test_quote_uses_high_priority_pool_and_priority_override():
    pool = create_rate_limiters(5, 5, 60)
    seen = []
    async with JupiterConnector(settings(), pool=pool, http=mock_http({}, seen)) as conn:
        await conn.get_quote(SOL, USDC, 1_000, slippage_bps=50)
        await conn.get_quote(SOL, USDC, 1_000, priority="low")

    assert dict(seen[0].url.params)["slippageBps"] == "50"
    assert pool.high.available_tokens == pytest.approx(4, abs=1e-3)
    assert pool.low.available_tokens == pytest.approx(4, abs=1e-3)


@pytest.mark.asyncio
async def test_strict_default_comes_from_settings():
    async with JupiterConnector(settings(JUPITER_STRICT=True), http=mock_http("garbage")) as conn:
        with pytest.raises(InvalidResponseError):
            await conn.search_tokens("USDC")
        assert await conn.search_tokens("USDC", is_strict=False) == "garbage"


@pytest.mark.asyncio
async def test_build_swap_posts_quote():
    quote = {
        "inputMint": SOL, "inAmount": "1", "outputMint": USDC, "outAmount": "1",
        "otherAmountThreshold": "1", "swapMode": "ExactIn", "slippageBps": 50,
        "priceImpactPct": "0", "routePlan": [],
    }
    swap = {"swapTransaction": "AQID", "lastValidBlockHeight": 1}
    seen = []
    async with JupiterConnector(settings(), http=mock_http(swap, seen)) as conn:
        assert await conn.build_swap("pk", quote, dynamic_compute_unit_limit=True) == swap

    body = json.loads(seen[0].content)
    assert body["userPublicKey"] == "pk"
    assert body["quoteResponse"]["inAmount"] == "1"
    assert body["dynamicComputeUnitLimit"] is True


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    http = mock_http(TOKENS)
    async with JupiterConnector(settings(), http=http):
        pass
    assert not http.is_closed
    await http.aclose()


# ──── CLI ────

@pytest.fixture
def quiet_cli(monkeypatch):
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)


def test_cli_search_prints_json(capsys, quiet_cli):
    conn = JupiterConnector(settings(), http=mock_http(TOKENS))
    assert main.main(["search", "USDC"], connector=conn) == 0
    assert json.loads(capsys.readouterr().out) == TOKENS


def test_cli_strict_failure_exit_code(quiet_cli):
    conn = JupiterConnector(settings(), http=mock_http("garbage"))
    assert main.main(["search", "USDC", "--strict"], connector=conn) == 1


def test_cli_parser_quote():
    args = main.build_parser().parse_args(["quote", SOL, USDC, "1000", "--slippage-bps", "30"])
    assert args.command == "quote"
    assert args.amount == 1000
    assert args.slippage_bps == 30


def test_cli_non_json_body_exit_code(quiet_cli):
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")
    http = httpx.AsyncClient(base_url="https://lite-api.jup.ag", transport=httpx.MockTransport(handler))
    conn = JupiterConnector(settings(), http=http)
    assert main.main(["search", "USDC", "--strict"], connector=conn) == 1
