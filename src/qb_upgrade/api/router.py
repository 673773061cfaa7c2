"""qb_upgrade REST API — catalog, purchase and use."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.database import get_db_session
from src.qb_common.response import ApiResponse, success_response
from src.qb_gateway.auth.dependencies import get_current_user_id
from src.qb_upgrade.application.schemas import UseUpgradeRequest
from src.qb_upgrade.application.service import UpgradeApplicationService

router = APIRouter(prefix="/upgrades", tags=["upgrades"])

_service = UpgradeApplicationService()


@router.get("")
async def list_upgrades(
    _user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_active_upgrades(db)
    resp = success_response([u.model_dump() for u in data])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/mine")
async def list_my_upgrades(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_user_upgrades(db, user_id)
    resp = success_response([u.model_dump() for u in data])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{upgrade_id}/purchase")
async def purchase_upgrade(
    upgrade_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.purchase_upgrade(db, user_id, upgrade_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/use")
async def use_upgrade(
    body: UseUpgradeRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.use_upgrade(db, user_id, body.user_upgrade_id, body.company_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
