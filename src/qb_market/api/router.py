"""Settlement REST API — scheduler-only trigger endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.database import get_db_session
from src.qb_common.response import ApiResponse, success_response
from src.qb_gateway.auth.dependencies import require_scheduler
from src.qb_market.application.service import SettlementService
from src.qb_market.trigger import trigger_resume, trigger_settlement

router = APIRouter(prefix="/settlement", tags=["settlement"])

_service = SettlementService()


@router.post("/run")
async def run_settlement(
    _scheduler: Annotated[str, Depends(require_scheduler)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await trigger_settlement(db, _service)
    if result is None:
        resp = success_response(None, message="no active products")
    else:
        resp = success_response(result.to_dict())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/resume")
async def resume_settlement(
    _scheduler: Annotated[str, Depends(require_scheduler)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    results = await trigger_resume(db, _service)
    resp = success_response([r.to_dict() for r in results])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
