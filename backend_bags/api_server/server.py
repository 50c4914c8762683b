"""
FastAPI server: fee-claim reports plus thin Bags/token proxies.

Routes (also mounted under /api for the existing front end):
  GET /claims/{wallet}/{token_mint}   (alias /check-claim/...)
  GET /rate-limit
  GET /wallet/{username}
  GET /token/{mint}
  GET /token-info/{mint}
  GET /test-tx/{signature}
  GET /health

Claims, wallet and token lookups consume the shared request quota; a
rejected request returns 429 before any upstream call is made.
"""

from __future__ import annotations

import functools
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend_bags.api_server.bags_api import BagsApiClient
from backend_bags.api_server.middleware import install_middleware
from backend_bags.api_server.rate_limit import RateGate
from backend_bags.api_server.token_info import get_token_info
from backend_bags.bags_logging import get_logger, mask_url
from backend_bags.claims.aggregator import ClaimAggregator
from backend_bags.claims.classifier import ClassifierConfig
from backend_bags.config import Settings, get_settings
from backend_bags.config.settings import load_cors_origins
from backend_bags.core.exceptions import LedgerRPCError, LedgerUnavailableError, UpstreamServiceError
from backend_bags.ledger.client import LedgerClient

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Try again later."


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------


@functools.lru_cache(maxsize=1)
def get_rate_gate() -> RateGate:
    """Dependency: the process-wide request quota."""
    settings = get_settings()
    return RateGate(limit=settings.rate_limit_total, window_sec=settings.rate_limit_window_sec)


@functools.lru_cache(maxsize=1)
def get_ledger_client() -> LedgerClient:
    """Dependency: shared ledger client (pooled connections, closed on shutdown)."""
    settings = get_settings()
    return LedgerClient(
        settings.rpc_url,
        timeout_sec=settings.rpc_timeout_sec,
        max_connections=max(settings.fetch_concurrency, 1) * 2,
    )


def get_aggregator(
    ledger: LedgerClient = Depends(get_ledger_client),
    settings: Settings = Depends(get_settings),
) -> ClaimAggregator:
    return ClaimAggregator(
        ledger,
        classifier_config=ClassifierConfig.with_extras(
            settings.claim_log_markers, settings.fee_program_ids
        ),
        signature_limit=settings.signature_limit,
        max_workers=settings.fetch_concurrency,
    )


@functools.lru_cache(maxsize=1)
def _bags_client(api_key: str, base_url: str) -> BagsApiClient:
    return BagsApiClient(api_key, base_url)


def get_bags_client(settings: Settings = Depends(get_settings)) -> BagsApiClient:
    """Dependency: shared Bags API client (one requests.Session per key), 503 without a key."""
    try:
        return _bags_client(settings.bags_api_key, settings.bags_api_url)
    except UpstreamServiceError as e:
        logger.error("bags_api_missing_config", need="BAGS_API_KEY")
        raise HTTPException(status_code=503, detail=str(e)) from e


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class ClaimRecordResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signature: str
    amount: float = Field(..., ge=0, description="SOL received in this claim")
    timestamp: str | None = Field(None, description="Block time (ISO 8601 UTC) or null")
    token_mint: str = Field(..., alias="tokenMint")
    currency: str
    tx_url: str = Field(..., alias="txUrl")
    slot: int


class ClaimReportResponse(BaseModel):
    """GET /claims/{wallet}/{token_mint} response."""

    model_config = ConfigDict(populate_by_name=True)

    wallet: str
    token_mint: str = Field(..., alias="tokenMint")
    has_claimed: bool = Field(..., alias="hasClaimed")
    claim_history: list[ClaimRecordResponse] = Field(default_factory=list, alias="claimHistory")
    total_claimed: float = Field(..., alias="totalClaimed")
    claim_count: int = Field(..., alias="claimCount")
    currency: str
    last_checked: str = Field(..., alias="lastChecked")


class RateLimitResponse(BaseModel):
    """GET /rate-limit response."""

    model_config = ConfigDict(populate_by_name=True)

    used: int
    remaining: int
    total: int
    reset_time: str = Field(..., alias="resetTime")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _rate_limited(gate: RateGate) -> JSONResponse:
    state = gate.snapshot()
    logger.warning("rate_limit_rejected", used=state.used, total=state.total)
    return JSONResponse(
        status_code=429,
        content={"error": RATE_LIMIT_MESSAGE, "remaining": 0, "resetTime": state.reset_time_iso},
    )


def _rate_limit_info(gate: RateGate) -> dict[str, Any]:
    state = gate.snapshot()
    return {"used": state.used, "remaining": state.remaining, "resetTime": state.reset_time_iso}


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Resolve settings at startup (ConfigError aborts); close outbound clients on shutdown."""
    settings = get_settings()
    logger.info(
        "api_startup",
        rpc_url=mask_url(settings.rpc_url),
        signature_limit=settings.signature_limit,
        fetch_concurrency=settings.fetch_concurrency,
        rate_limit_total=settings.rate_limit_total,
        bags_api_configured=bool(settings.bags_api_key),
    )
    yield
    if get_ledger_client.cache_info().currsize:
        get_ledger_client().close()
        get_ledger_client.cache_clear()
    if settings.bags_api_key and _bags_client.cache_info().currsize:
        _bags_client(settings.bags_api_key, settings.bags_api_url).close()
        _bags_client.cache_clear()
    logger.info("api_shutdown")


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

router = APIRouter()


@router.get("/claims/{wallet}/{token_mint}", response_model=ClaimReportResponse)
@router.get("/check-claim/{wallet}/{token_mint}", response_model=ClaimReportResponse)
def check_claims(
    wallet: str,
    token_mint: str,
    gate: RateGate = Depends(get_rate_gate),
    aggregator: ClaimAggregator = Depends(get_aggregator),
) -> Any:
    """
    Report SOL fee claims received by wallet for token_mint over its most
    recent transactions. 429 when the quota is exhausted, 502 when the
    ledger node cannot list the wallet's signatures.
    """
    if not gate.admit():
        return _rate_limited(gate)
    wallet = wallet.strip()
    token_mint = token_mint.strip()
    logger.info("claims_check_called", wallet=wallet[:8] + "...", token_mint=token_mint[:8] + "...")
    try:
        report = aggregator.build_report(wallet, token_mint)
    except LedgerUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except Exception as e:
        logger.exception("claims_check_failed", wallet=wallet[:8] + "...", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e
    return report.to_dict()


@router.get("/rate-limit", response_model=RateLimitResponse)
def rate_limit_status(gate: RateGate = Depends(get_rate_gate)) -> Any:
    """Current quota usage; does not consume quota."""
    return gate.snapshot().to_dict()


@router.get("/wallet/{username}")
def creator_wallet(
    username: str,
    provider: str = "twitter",
    gate: RateGate = Depends(get_rate_gate),
    bags: BagsApiClient = Depends(get_bags_client),
) -> Any:
    """Fee-share wallet for a social username (Bags API pass-through)."""
    if not gate.admit():
        return _rate_limited(gate)
    try:
        data = bags.get_fee_share_wallet(username, provider=provider)
    except UpstreamServiceError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return {**data, "rateLimit": _rate_limit_info(gate)}


@router.get("/token/{mint}")
def token_creators(
    mint: str,
    gate: RateGate = Depends(get_rate_gate),
    bags: BagsApiClient = Depends(get_bags_client),
) -> Any:
    """Creators of a Bags-launched token."""
    if not gate.admit():
        return _rate_limited(gate)
    try:
        data = bags.get_token_creators(mint)
    except UpstreamServiceError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return {
        "success": data["success"],
        "response": {"tokenName": mint[:8] + "...", "creators": data["creators"]},
        "rateLimit": _rate_limit_info(gate),
    }


@router.get("/token-info/{mint}")
def token_info(mint: str, settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    """Name, symbol and decimals for a mint; placeholders when unknown."""
    try:
        return get_token_info(mint, settings.public_rpc_url).to_dict()
    except Exception as e:
        logger.exception("token_info_failed", mint=mint[:8] + "...", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/test-tx/{signature}")
def test_transaction(signature: str, ledger: LedgerClient = Depends(get_ledger_client)) -> dict[str, Any]:
    """Diagnostic: can the ledger node return this transaction?"""
    try:
        raw = ledger.fetch_transaction_raw(signature)
    except LedgerRPCError as e:
        logger.warning("test_tx_rpc_error", signature=signature[:12] + "...", error=str(e))
        raise HTTPException(status_code=502, detail=str(e)) from e
    except Exception as e:
        logger.exception("test_tx_failed", signature=signature[:12] + "...", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e
    if raw is None:
        return {"found": False, "message": "Transaction not found or pruned"}
    message = (raw.get("transaction") or {}).get("message") or {}
    return {
        "found": True,
        "blockTime": raw.get("blockTime"),
        "slot": raw.get("slot"),
        "hasMeta": bool(raw.get("meta")),
        "accountKeysCount": len(message.get("accountKeys") or []),
    }


@router.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Backend Bags API",
    description="Fee-claim checker for Bags token creators (Solana).",
    version="0.1.0",
    lifespan=lifespan,
)

install_middleware(app, load_cors_origins())
app.include_router(router, tags=["Claims"])
app.include_router(router, prefix="/api", include_in_schema=False)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Any, exc: StarletteHTTPException) -> JSONResponse:
    """Consistent JSON error body: {"error": message}. Covers routing 404/405 too."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Any, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request parameters", "details": jsonable_encoder(exc.errors())},
    )
