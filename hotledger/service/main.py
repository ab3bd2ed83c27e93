"""
HotLedger relayer service.

HTTP surface over a single ledger. Any client may relay a signed
emergency-withdraw authorization; the signature is the only credential.
The unsigned account endpoints (/transfer, /emergency_recipient) act for
whatever address the body names, so they are for operators and are
switched off in production unless HOTLEDGER_ACCOUNT_ENDPOINTS enables them.
Current time is taken from the wall clock at request time.
"""

import logging
import math
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .. import config
from ..errors import FailureCode, LedgerError
from ..events import EventType
from ..ledger import Ledger
from ..logging_config import audit_log, configure_logging, set_request_id
from ..state import InMemoryLedgerState, SQLiteLedgerState
from ..typed_data import TypedDataDomain
from ..util import now_epoch
from .models import EmergencyWithdrawRequest, RecipientRequest, TransferRequest
from .rate_limit import AccountThrottle

logger = logging.getLogger(__name__)

app = FastAPI(
    title="HotLedger Relayer",
    docs_url=None if config.is_production() else "/docs",
    redoc_url=None,
)

STATUS_BY_CODE = {
    FailureCode.EXPIRED: 403,
    FailureCode.INVALID_SIGNATURE: 403,
    FailureCode.BLACKLISTED: 403,
    FailureCode.INSUFFICIENT_BALANCE: 400,
    FailureCode.NO_ROUTE: 409,
    FailureCode.CYCLIC_ROUTE: 409,
}

transfer_limiter = AccountThrottle(config.TRANSFER_RPM)
withdraw_limiter = AccountThrottle(config.WITHDRAW_RPM)
LEDGER: Optional[Ledger] = None


def build_ledger() -> Ledger:
    """Open the configured state, minting only if it is fresh."""
    settings = config.ledger_settings()
    state = SQLiteLedgerState(config.DB_PATH) if config.DB_PATH else InMemoryLedgerState()
    if state.is_initialized():
        domain = TypedDataDomain(
            name=settings["name"],
            version=settings["version"],
            chain_id=settings["chain_id"],
            ledger_identity=settings["ledger_identity"],
        )
        return Ledger(
            domain,
            state=state,
            symbol=settings["symbol"],
            decimals=settings["decimals"],
            max_route_hops=settings["max_route_hops"],
        )
    return Ledger.create(state=state, **settings)


def set_ledger(ledger: Ledger) -> None:
    global LEDGER
    LEDGER = ledger


def get_ledger() -> Ledger:
    if LEDGER is None:
        raise HTTPException(503, "LEDGER_NOT_READY")
    return LEDGER


@app.on_event("startup")
def _startup():
    level = "DEBUG" if config.is_debug() else config.LOG_LEVEL
    configure_logging(level, json_format=config.LOG_JSON)
    if LEDGER is None:
        set_ledger(build_ledger())
    logger.info("ledger ready: chain_id=%s identity=%s", LEDGER.chain_id, LEDGER.ledger_identity)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = set_request_id(request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=STATUS_BY_CODE.get(exc.code, 400), content=exc.to_dict())


def _rate_limit(limiter: AccountThrottle, account: str, endpoint: str) -> None:
    retry_after = limiter.acquire(endpoint, account)
    if retry_after is not None:
        audit_log.rate_limit_exceeded(account, endpoint, retry_after)
        raise HTTPException(
            429, "RATE_LIMIT", headers={"Retry-After": str(max(1, math.ceil(retry_after)))}
        )


def _require_account_endpoints(endpoint: str) -> None:
    if not config.account_endpoints_enabled():
        audit_log.security_event("account_endpoint_disabled", "medium", endpoint=endpoint)
        raise HTTPException(403, "ACCOUNT_ENDPOINTS_DISABLED")


@app.get("/health")
def health():
    ledger = get_ledger()
    return {"status": "ok", "chain_id": ledger.chain_id, "ledger_identity": ledger.ledger_identity}


@app.get("/domain")
def domain():
    ledger = get_ledger()
    d = ledger.domain.to_dict()
    d.update({"symbol": ledger.symbol, "decimals": ledger.decimals,
              "total_supply": str(ledger.total_supply())})
    return d


@app.get("/accounts/{address}")
def account(address: str):
    ledger = get_ledger()
    try:
        return {
            "address": address,
            "balance": str(ledger.balance_of(address)),
            "blacklisted": ledger.is_blacklisted(address),
            "emergency_recipient": ledger.get_recipient(address),
        }
    except ValueError as e:
        raise HTTPException(422, str(e))


@app.post("/transfer")
def transfer(req: TransferRequest):
    _require_account_endpoints("/transfer")
    _rate_limit(transfer_limiter, req.sender, "/transfer")
    ledger = get_ledger()
    try:
        receipt = ledger.transfer(req.sender, req.destination, req.amount)
    except ValueError as e:
        raise HTTPException(422, str(e))
    return receipt.to_dict()


@app.post("/emergency_recipient")
def emergency_recipient(req: RecipientRequest):
    _require_account_endpoints("/emergency_recipient")
    _rate_limit(transfer_limiter, req.caller, "/emergency_recipient")
    ledger = get_ledger()
    try:
        ledger.set_recipient(req.caller, req.recipient)
        recipient = ledger.get_recipient(req.caller)
    except ValueError as e:
        raise HTTPException(422, str(e))
    return {"status": "OK", "caller": req.caller, "recipient": recipient}


@app.post("/emergency_withdraw")
def emergency_withdraw(req: EmergencyWithdrawRequest):
    _rate_limit(withdraw_limiter, req.owner, "/emergency_withdraw")
    ledger = get_ledger()
    try:
        signature = req.to_signature()
        receipt = ledger.emergency_withdraw(req.owner, req.deadline, signature, now=now_epoch())
    except ValueError as e:
        raise HTTPException(422, str(e))
    return receipt.to_dict()


@app.get("/events")
def events(event_type: Optional[EventType] = None):
    return [e.to_dict() for e in get_ledger().events(event_type)]
