"""Cursor-based pagination over SQLAlchemy select statements.

A cursor is the urlsafe-base64 encoding of the cursor column's value for a
row.  Paging forward with ``after`` restricts the window to rows strictly
past the decoded value in the requested order.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from userdeck.core.exceptions import BadRequestError

T = TypeVar("T")


class QueryOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class CursorType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"


@dataclass
class Edge(Generic[T]):
    cursor: str
    node: T


@dataclass
class PageInfo:
    start_cursor: str = ""
    end_cursor: str = ""
    has_next_page: bool = False
    has_previous_page: bool = False


@dataclass
class Page(Generic[T]):
    previous_count: int
    current_count: int
    edges: list[Edge[T]] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)


def encode_cursor(value: Any, cursor_type: CursorType = CursorType.STRING) -> str:
    if cursor_type is CursorType.DATE:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        raw = str(int(value.timestamp() * 1000))
    else:
        raw = str(value)
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str, cursor_type: CursorType = CursorType.STRING) -> Any:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        if cursor_type is CursorType.STRING:
            return raw
        number = int(raw)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise BadRequestError("Invalid cursor")
    if cursor_type is CursorType.DATE:
        return datetime.fromtimestamp(number / 1000, tz=timezone.utc)
    return number


async def paginate(
    db: AsyncSession,
    stmt: Select,
    cursor_column: InstrumentedAttribute,
    first: int,
    after: str | None = None,
    order: QueryOrder = QueryOrder.ASC,
    cursor_type: CursorType = CursorType.STRING,
) -> Page:
    """Return one page of *stmt* ordered by *cursor_column*."""
    previous_count = 0
    if after is not None:
        value = decode_cursor(after, cursor_type)
        if order is QueryOrder.ASC:
            before_clause, window_clause = cursor_column <= value, cursor_column > value
        else:
            before_clause, window_clause = cursor_column >= value, cursor_column < value
        previous_count = await _count(db, stmt.where(before_clause))
        stmt = stmt.where(window_clause)

    current_count = await _count(db, stmt)
    ordering = cursor_column.asc() if order is QueryOrder.ASC else cursor_column.desc()
    result = await db.execute(stmt.order_by(ordering).limit(first))
    nodes = list(result.scalars().all())

    page = Page(previous_count=previous_count, current_count=current_count)
    if not nodes:
        return page

    attr = cursor_column.key
    page.edges = [Edge(cursor=encode_cursor(getattr(n, attr), cursor_type), node=n) for n in nodes]
    page.page_info = PageInfo(
        start_cursor=page.edges[0].cursor,
        end_cursor=page.edges[-1].cursor,
        has_next_page=current_count > first,
        has_previous_page=previous_count > 0,
    )
    return page


async def _count(db: AsyncSession, stmt: Select) -> int:
    return (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
