from sqlmodel import select, func
from pydantic import BaseModel, Field
from fastapi import Query
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.sql.selectable import Select
from typing import List, Tuple
import math


MAX_PAGE_SIZE = 100


class PaginationParameters(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


def pagination_parameters(page: int = Query(1), limit: int = Query(10)) -> PaginationParameters:
    """Query dependency; out-of-range values are clamped instead of rejected."""
    return PaginationParameters(
        page=max(page, 1),
        limit=min(max(limit, 1), MAX_PAGE_SIZE)
    )


async def paginate(
        session: AsyncSession,
        statement: Select,
        params: PaginationParameters,
        *order_by) -> Tuple[List[dict], PaginationMeta]:
    """Run ``statement`` as a count query and as one ordered page.

    ``statement`` must select labelled columns; rows come back as plain dicts
    keyed by label.
    """
    count_query = select(func.count()).select_from(statement.order_by(None).subquery())
    total = (await session.exec(count_query)).one()

    query = (
        statement
        .order_by(*order_by)
        .limit(params.limit)
        .offset(params.offset)
    )
    result = await session.exec(query)
    items = [dict(row) for row in result.mappings().all()]

    meta = PaginationMeta(
        total=total,
        page=params.page,
        limit=params.limit,
        totalPages=math.ceil(total / params.limit)
    )
    return items, meta
