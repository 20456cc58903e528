"""Local-first FastAPI shell over one in-process ledger."""

from __future__ import annotations

from typing import Dict, List, Optional
import logging

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from capabilities.bundle import validate_flags
from capabilities.store import AssetCapabilityStore
from core.errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    LedgerError,
    NotFoundError,
    OutOfRangeError,
    PermissionDeniedError,
)
from core.identity import ContextCallerIdentity
from core.models import EntityId, OwnerId
from core.registry import InMemoryObjectRegistry
from fungible.ledger import Ledger
from fungible.policy import LedgerPolicy

logger = logging.getLogger(__name__)

app = FastAPI(title="Capability Ledger", description="Local-first ledger shell")

_REGISTRY = InMemoryObjectRegistry()
_IDENTITY = ContextCallerIdentity()
_STORE = AssetCapabilityStore(_REGISTRY, _IDENTITY)
_LEDGER = Ledger(_REGISTRY, _IDENTITY, policy=LedgerPolicy.from_env())

_ERROR_STATUS: Dict[type, int] = {
    InvalidArgumentError: 400,
    PermissionDeniedError: 403,
    NotFoundError: 404,
    AlreadyExistsError: 409,
    OutOfRangeError: 422,
}


class AssetRequest(BaseModel):
    maximum_supply: Optional[int] = Field(default=None, ge=0)
    flags: List[bool] = Field(default_factory=lambda: [True, True, True])


class MintRequest(BaseModel):
    to: str = Field(min_length=1)
    amount: int


class BurnRequest(BaseModel):
    from_owner: str = Field(min_length=1)
    amount: int


class FreezeRequest(BaseModel):
    owner: str = Field(min_length=1)


class TransferRequest(BaseModel):
    to: str = Field(min_length=1)
    amount: int


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


async def _handle_errors(request: Request, exc: LedgerError):
    status_code = 400
    for cls in type(exc).__mro__:
        if cls in _ERROR_STATUS:
            status_code = _ERROR_STATUS[cls]
            break
    return JSONResponse({"error": str(exc), "code": exc.code}, status_code=status_code)


for _exc_class in _ERROR_STATUS:
    app.add_exception_handler(_exc_class, _handle_errors)


@app.post("/api/assets")
async def create_asset(payload: AssetRequest, x_caller: Optional[str] = Header(default=None)):
    caller = _require_caller(x_caller)
    flags = validate_flags(payload.flags)
    asset_id = _REGISTRY.create_entity(caller)
    try:
        _LEDGER.supply.initialize(asset_id, maximum=payload.maximum_supply)
    except LedgerError:
        _REGISTRY.delete_entity(_REGISTRY.generate_delete_capability(asset_id))
        raise
    with _IDENTITY.acting_as(caller):
        _STORE.initialize(asset_id, flags)
    logger.info(f"{caller} created asset {asset_id}")
    return _asset_payload(asset_id)


@app.get("/api/assets/{asset_id}")
async def asset_status(asset_id: str):
    return _asset_payload(EntityId(asset_id))


@app.post("/api/assets/{asset_id}/mint")
async def mint(asset_id: str, payload: MintRequest, x_caller: Optional[str] = Header(default=None)):
    caller = _require_caller(x_caller)
    with _IDENTITY.acting_as(caller):
        with _STORE.lease_mint(EntityId(asset_id)) as cap:
            view = _LEDGER.mint_to(cap, EntityId(asset_id), payload.amount, OwnerId(payload.to))
    return view.to_dict()


@app.post("/api/assets/{asset_id}/burn")
async def burn(asset_id: str, payload: BurnRequest, x_caller: Optional[str] = Header(default=None)):
    caller = _require_caller(x_caller)
    with _IDENTITY.acting_as(caller):
        with _STORE.lease_burn(EntityId(asset_id)) as cap:
            _LEDGER.burn_with_cap(cap, EntityId(asset_id), payload.amount, OwnerId(payload.from_owner))
    return _asset_payload(EntityId(asset_id))


@app.post("/api/assets/{asset_id}/freeze")
async def freeze(asset_id: str, payload: FreezeRequest, x_caller: Optional[str] = Header(default=None)):
    caller = _require_caller(x_caller)
    with _IDENTITY.acting_as(caller):
        with _STORE.lease_freeze(EntityId(asset_id)) as cap:
            view = _LEDGER.freeze(cap, OwnerId(payload.owner), EntityId(asset_id))
    return view.to_dict()


@app.post("/api/assets/{asset_id}/unfreeze")
async def unfreeze(asset_id: str, payload: FreezeRequest, x_caller: Optional[str] = Header(default=None)):
    caller = _require_caller(x_caller)
    with _IDENTITY.acting_as(caller):
        with _STORE.lease_freeze(EntityId(asset_id)) as cap:
            view = _LEDGER.unfreeze(cap, OwnerId(payload.owner), EntityId(asset_id))
    return view.to_dict()


@app.post("/api/assets/{asset_id}/transfer")
async def transfer(asset_id: str, payload: TransferRequest, x_caller: Optional[str] = Header(default=None)):
    caller = _require_caller(x_caller)
    with _IDENTITY.acting_as(caller):
        _LEDGER.transfer(caller, EntityId(asset_id), OwnerId(payload.to), payload.amount)
    return {
        "from": _LEDGER.balance(caller, EntityId(asset_id)),
        "to": _LEDGER.balance(OwnerId(payload.to), EntityId(asset_id)),
    }


@app.get("/api/accounts/{owner}")
async def holdings(owner: str):
    return {"owner": owner, "holdings": [view.to_dict() for view in _LEDGER.holdings(OwnerId(owner))]}


@app.get("/api/accounts/{owner}/{asset_id}")
async def account(owner: str, asset_id: str):
    view = _LEDGER.get_or_create_subaccount(OwnerId(owner), EntityId(asset_id), create_on_demand=False)
    return view.to_dict()


@app.post("/api/accounts/{owner}/{asset_id}/prune")
async def prune(owner: str, asset_id: str):
    return {"pruned": _LEDGER.prune(OwnerId(owner), EntityId(asset_id))}


def _require_caller(x_caller: Optional[str]) -> OwnerId:
    if not x_caller:
        raise PermissionDeniedError("X-Caller header required.")
    return OwnerId(x_caller)


def _asset_payload(asset_id: EntityId) -> dict:
    supply = _LEDGER.supply.snapshot(asset_id)
    return {
        "asset_id": asset_id,
        "owner": _REGISTRY.resolve_owner(asset_id),
        "supply": supply.to_dict(),
        "capabilities": {
            "mint": _STORE.contains_mint(asset_id),
            "freeze": _STORE.contains_freeze(asset_id),
            "burn": _STORE.contains_burn(asset_id),
        },
    }


def _reset_state() -> None:
    global _REGISTRY, _IDENTITY, _STORE, _LEDGER
    _REGISTRY = InMemoryObjectRegistry()
    _IDENTITY = ContextCallerIdentity()
    _STORE = AssetCapabilityStore(_REGISTRY, _IDENTITY)
    _LEDGER = Ledger(_REGISTRY, _IDENTITY, policy=LedgerPolicy.from_env())
