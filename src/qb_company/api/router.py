"""qb_company REST API — company formation and products."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.database import get_db_session
from src.qb_common.response import ApiResponse, success_response
from src.qb_company.application.schemas import CreateCompanyRequest, CreateProductRequest
from src.qb_company.application.service import CompanyApplicationService
from src.qb_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/companies", tags=["companies"])

_service = CompanyApplicationService()


@router.post("")
async def create_company(
    body: CreateCompanyRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_company(db, user_id, body.name, body.ticker)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{company_id}")
async def get_company(
    company_id: str,
    _user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_company(db, company_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{company_id}/products")
async def create_product(
    company_id: str,
    body: CreateProductRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_product(
        db, user_id, company_id, body.name, body.description, body.price_cents
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{company_id}/products")
async def list_products(
    company_id: str,
    _user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_products(db, company_id)
    resp = success_response([p.model_dump() for p in data])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.delete("/{company_id}/products/{product_id}")
async def deactivate_product(
    company_id: str,
    product_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deactivate_product(db, user_id, company_id, product_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
