"""qb_ledger REST API — 5 endpoints, all require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.database import get_db_session
from src.qb_common.response import ApiResponse, success_response
from src.qb_gateway.auth.dependencies import get_current_user_id
from src.qb_ledger.application.schemas import TransferRequest
from src.qb_ledger.application.service import LedgerApplicationService

router = APIRouter(prefix="/accounts", tags=["accounts"])

_service = LedgerApplicationService()


@router.get("")
async def list_accounts(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_accounts(db, user_id)
    resp = success_response([a.model_dump() for a in data])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/personal")
async def open_personal_account(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.open_personal_account(db, user_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{account_id}/balance")
async def get_balance(
    account_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, user_id, account_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{account_id}/ledger")
async def list_ledger(
    account_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(db, user_id, account_id, cursor, limit, entry_type)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/transfer")
async def transfer(
    body: TransferRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.transfer(
        db,
        user_id,
        body.from_account_id,
        body.to_account_id,
        body.amount_cents,
        body.description,
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
