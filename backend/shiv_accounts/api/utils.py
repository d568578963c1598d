"""Helpers shared by the endpoint modules"""
from datetime import datetime, time
from typing import Any, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from shiv_accounts.services.calculations import generate_document_number, pagination


async def paginate(db: AsyncSession, query, page: int, limit: int, options=()) -> Tuple[List[Any], int]:
    """Run `query` for one page and return (rows, total); loader `options` apply to the page only"""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    if options:
        query = query.options(*options)
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().unique().all()), total


def page_payload(data: List[Any], total: int, page: int, limit: int) -> dict:
    meta = pagination(page, limit, total)
    return {
        "data": data,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": meta["total_pages"],
    }


def parse_date_param(
    value: Optional[str],
    name: str,
    end_of_day: bool = False,
    required: bool = False) -> Optional[datetime]:
    """
    Parse an ISO date or datetime query parameter

    A date without a time is expanded to the end of that day when
    `end_of_day` is set so the bound is inclusive. A blank value is None,
    or a 400 when the parameter is `required`.
    """
    if not value or not value.strip():
        if required:
            raise HTTPException(status_code=400, detail=f"{name} is required")
        return None
    value = value.strip()
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: expected YYYY-MM-DD")
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None)
    if end_of_day and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


async def unique_document_number(db: AsyncSession, column, prefix: str, attempts: int = 5) -> str:
    """Generate a document number that is not yet used in `column`"""
    for _ in range(attempts):
        number = generate_document_number(prefix)
        exists = await db.execute(select(column).where(column == number))
        if exists.scalar_one_or_none() is None:
            return number
    raise HTTPException(status_code=500, detail="Could not allocate a document number")
