"""Stock movement API - movement history and manual adjustments"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shiv_accounts.api.utils import paginate, page_payload, parse_date_param
from shiv_accounts.core.deps import get_db, get_current_user
from shiv_accounts.core.constants import MovementType, ReferenceType
from shiv_accounts.models.product import Product
from shiv_accounts.models.stock import StockMovement
from shiv_accounts.models.user import User
from shiv_accounts.schemas.ledger import (
    StockAdjustmentCreate, StockMovementResponse, StockMovementListResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()


def build_movement_response(movement: StockMovement) -> StockMovementResponse:
    return StockMovementResponse(
        id=movement.id,
        product_id=movement.product_id,
        product_name=movement.product.name if movement.product else "",
        movement_type=movement.movement_type,
        quantity=float(movement.quantity),
        reference_type=movement.reference_type,
        reference_id=movement.reference_id,
        description=movement.description,
        movement_date=movement.movement_date,
    )


@router.get("", response_model=StockMovementListResponse)
async def list_stock_movements(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    product_id: Optional[int] = None,
    movement_type: Optional[str] = Query(None, description="IN / OUT / ADJUSTMENT"),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(StockMovement)
    if product_id:
        query = query.where(StockMovement.product_id == product_id)
    if movement_type:
        query = query.where(StockMovement.movement_type == movement_type)
    start = parse_date_param(start_date, "start_date")
    end = parse_date_param(end_date, "end_date", end_of_day=True)
    if start:
        query = query.where(StockMovement.movement_date >= start)
    if end:
        query = query.where(StockMovement.movement_date <= end)

    query = query.order_by(StockMovement.movement_date.desc(), StockMovement.id.desc())
    movements, total = await paginate(
        db, query, page, limit, options=(selectinload(StockMovement.product),)
    )
    return page_payload([build_movement_response(m) for m in movements], total, page, limit)


@router.post("/adjustment", response_model=StockMovementResponse, status_code=201)
async def create_adjustment(
    data: StockAdjustmentCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """Correct the quantity on hand; positive adds, negative removes"""
    product = await db.get(Product, data.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if not product.is_goods:
        raise HTTPException(status_code=400, detail="Only GOODS products carry stock")

    movement = StockMovement(
        product_id=product.id,
        movement_type=MovementType.ADJUSTMENT,
        quantity=Decimal(str(data.quantity)),
        reference_type=ReferenceType.STOCK_ADJUSTMENT,
        description=data.description or "Manual stock adjustment",
        movement_date=data.movement_date or datetime.utcnow(),
    )
    movement.product = product
    db.add(movement)
    await db.commit()

    logger.info(f"📦 Stock adjustment {data.quantity} for {product.name}")
    return build_movement_response(movement)
