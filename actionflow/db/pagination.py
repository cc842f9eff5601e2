"""
Offset pagination over SQLAlchemy select() statements, plus meta and link helpers.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session


@dataclass
class Page:
    items: List[Any]
    page: int
    per_page: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_count / self.per_page)) if self.per_page else 1

    @property
    def next_page(self) -> Optional[int]:
        return self.page + 1 if self.page < self.total_pages else None

    @property
    def prev_page(self) -> Optional[int]:
        return self.page - 1 if self.page > 1 else None


def clamp_page_params(page: Any, per_page: Any, default_per_page: int = 25, max_per_page: int = 100):
    try:
        page = max(1, int(page))
    except (TypeError, ValueError):
        page = 1
    try:
        per_page = int(per_page)
    except (TypeError, ValueError):
        per_page = default_per_page
    per_page = min(max(1, per_page), max_per_page)
    return page, per_page


def paginate(session: Session, stmt: Select, page: int = 1, per_page: int = 25) -> Page:
    total = session.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    items = list(session.scalars(stmt.limit(per_page).offset((page - 1) * per_page)))
    return Page(items=items, page=page, per_page=per_page, total_count=int(total))


def pagination_meta(page: Page) -> Dict[str, Any]:
    return {
        "pagination": {
            "current_page": page.page,
            "per_page": page.per_page,
            "total_count": page.total_count,
            "total_pages": page.total_pages,
            "next_page": page.next_page,
            "prev_page": page.prev_page,
        }
    }


def pagination_links(base_url: str, page: Page, params: Optional[Dict[str, Any]] = None) -> Dict[str, Optional[str]]:
    extra = {k: v for k, v in (params or {}).items() if k not in ("page", "per_page")}

    def link(number: Optional[int]) -> Optional[str]:
        if number is None:
            return None
        return f"{base_url}?{urlencode({**extra, 'page': number, 'per_page': page.per_page})}"

    return {
        "self": link(page.page),
        "first": link(1),
        "prev": link(page.prev_page),
        "next": link(page.next_page),
        "last": link(page.total_pages),
    }
