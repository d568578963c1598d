"""HSN code lookup API

Searches hit the local cache first and fall back to the GST portal;
portal results are cached for later lookups.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, or_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.api.utils import paginate, page_payload
from shiv_accounts.core.config import settings
from shiv_accounts.core.deps import get_db, get_current_user, require_admin
from shiv_accounts.core.constants import HsnCategory
from shiv_accounts.models.hsn import HsnCode
from shiv_accounts.models.user import User
from shiv_accounts.schemas.hsn import (
    HsnCodeResponse, HsnCodeListResponse, HsnSearchResponse, HsnValidateRequest, HsnValidateResponse
)
from shiv_accounts.services import hsn_client

logger = logging.getLogger(__name__)

router = APIRouter()

CACHE_SEARCH_LIMIT = 10


async def cache_codes(db: AsyncSession, rows: list) -> int:
    """Insert portal rows whose code is not cached yet"""
    codes = {row["code"] for row in rows}
    existing = set((await db.execute(select(HsnCode.code).where(HsnCode.code.in_(codes)))).scalars().all())

    added = 0
    for row in rows:
        if row["code"] in existing:
            continue
        db.add(HsnCode(code=row["code"], description=row["description"], category=row["category"]))
        existing.add(row["code"])
        added += 1
    await db.commit()
    return added


@router.get("/search", response_model=HsnSearchResponse)
async def search_hsn(
    input_text: str = Query(..., min_length=1),
    selected_type: str = Query("byCode", pattern="^(byCode|byDesc)$"),
    category: Optional[str] = Query(None, pattern="^(null|P|S)$"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    pattern = f"%{input_text}%"
    cached = await db.execute(
        select(HsnCode)
        .where(or_(HsnCode.code.ilike(pattern), HsnCode.description.ilike(pattern)))
        .order_by(HsnCode.created_at.desc())
        .limit(CACHE_SEARCH_LIMIT)
    )
    rows = cached.scalars().all()
    if rows:
        return HsnSearchResponse(source="cache", data=[HsnCodeResponse.model_validate(r) for r in rows])

    portal_category = None if category in (None, "null") else category
    try:
        found = await hsn_client.fetch_hsn_codes(input_text, selected_type, portal_category)
    except hsn_client.HsnLookupError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    if not found:
        raise HTTPException(status_code=404, detail="No HSN codes found")

    added = await cache_codes(db, found)
    logger.info(f"🔎 HSN search '{input_text}' returned {len(found)} codes, cached {added}")
    return HsnSearchResponse(source="api", data=[HsnCodeResponse(**row) for row in found])


@router.get("/code/{code}", response_model=HsnCodeResponse)
async def get_hsn_code(
    code: str,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(select(HsnCode).where(HsnCode.code == code))
    hsn = result.scalar_one_or_none()
    if not hsn:
        raise HTTPException(status_code=404, detail="HSN code not found")
    return hsn


@router.get("/cached", response_model=HsnCodeListResponse)
async def list_cached(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    category: Optional[str] = Query(None, description="PRODUCT / SERVICE / GENERAL"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    query = select(HsnCode)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(HsnCode.code.ilike(pattern), HsnCode.description.ilike(pattern)))
    if category:
        if category not in HsnCategory.ALL:
            raise HTTPException(status_code=400, detail="Invalid category")
        query = query.where(HsnCode.category == category)

    query = query.order_by(HsnCode.created_at.desc(), HsnCode.id.desc())
    codes, total = await paginate(db, query, page, limit)
    return page_payload([HsnCodeResponse.model_validate(c) for c in codes], total, page, limit)


@router.delete("/cache")
async def clear_cache(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin)
):
    result = await db.execute(delete(HsnCode))
    await db.commit()
    logger.info(f"🗑️ Cleared {result.rowcount} cached HSN codes")
    return {"message": "HSN cache cleared successfully", "deleted": result.rowcount}


@router.get("/stats")
async def hsn_stats(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    result = await db.execute(select(HsnCode.category, func.count(HsnCode.id)).group_by(HsnCode.category))
    counts = dict(result.all())
    return {
        "total_codes": sum(counts.values()),
        "product_codes": counts.get(HsnCategory.PRODUCT, 0),
        "service_codes": counts.get(HsnCategory.SERVICE, 0),
        "general_codes": counts.get(HsnCategory.GENERAL, 0),
    }


@router.post("/validate", response_model=HsnValidateResponse)
async def validate_hsn(
    data: HsnValidateRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user)
):
    """
    Check whether a code exists

    source is "cache", "api", or "api_error" when the portal could not be
    reached (the code is then reported invalid).
    """
    result = await db.execute(select(HsnCode).where(HsnCode.code == data.code))
    cached = result.scalar_one_or_none()
    if cached:
        return HsnValidateResponse(
            code=cached.code,
            description=cached.description,
            category=cached.category,
            is_valid=True,
            source="cache",
        )

    try:
        found = await hsn_client.fetch_hsn_codes(
            data.code, "byCode", None, timeout=settings.HSN_VALIDATE_TIMEOUT
        )
    except hsn_client.HsnLookupError as e:
        logger.warning(f"HSN validation for {data.code} could not reach the portal: {e.detail}")
        return HsnValidateResponse(code=data.code, is_valid=False, source="api_error")

    if not found:
        return HsnValidateResponse(code=data.code, is_valid=False, source="api")

    first = found[0]
    await cache_codes(db, [first])
    return HsnValidateResponse(
        code=first["code"],
        description=first["description"],
        category=first["category"],
        is_valid=True,
        source="api",
    )
