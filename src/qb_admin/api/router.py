"""Admin REST API — invariant checks and balance repair."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_admin.application.service import AdminService
from src.qb_common.database import get_db_session
from src.qb_common.enums import BalanceSyncDirection
from src.qb_common.response import ApiResponse, success_response
from src.qb_gateway.auth.dependencies import require_admin

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class ReconcileRequest(BaseModel):
    direction: BalanceSyncDirection = BalanceSyncDirection.ACCOUNT_TO_BALANCE


@router.get("/invariants")
async def verify_invariants(
    _admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.verify_invariants(db)
    return success_response(result)


@router.post("/balances/reconcile")
async def reconcile_balances(
    body: ReconcileRequest,
    _admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.reconcile_balances(db, body.direction)
    return success_response(result)


@router.post("/accounts/{account_id}/recalculate")
async def recalculate_from_ledger(
    account_id: str,
    _admin: Annotated[str, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.recalculate_from_ledger(db, account_id)
    return success_response(result)
