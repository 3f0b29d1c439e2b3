from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    total_items: int
    page_size: int
    current_page: int
    total_pages: int
    start_item: int
    end_item: int
    visible_pages: list[int | str]
