"""Shared response schemas."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class MessageOut(BaseModel):
    message: str


class PageInfoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_cursor: str
    end_cursor: str
    has_next_page: bool
    has_previous_page: bool


class EdgeOut(BaseModel, Generic[T]):
    model_config = ConfigDict(from_attributes=True)

    cursor: str
    node: T


class PaginatedOut(BaseModel, Generic[T]):
    model_config = ConfigDict(from_attributes=True)

    previous_count: int
    current_count: int
    edges: list[EdgeOut[T]]
    page_info: PageInfoOut
