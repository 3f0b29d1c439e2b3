from fastapi import Query

from classroom.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from classroom.db.session import SessionLocal


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class PageParams:
    """Query parameters shared by every paginated list endpoint."""

    def __init__(
        self,
        page: int = Query(1, description="1-based page number"),
        page_size: int = Query(DEFAULT_PAGE_SIZE, description="items per page"),
    ):
        # out-of-range values are clamped, never rejected
        self.page = max(1, page)
        self.page_size = min(max(1, page_size), MAX_PAGE_SIZE)
