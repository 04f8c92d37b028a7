"""History table logic: search, rating-band filter, tri-state sort, pagination.

Pure functions over the list endpoint's summary rows so the page template
only renders what these return.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

RatingBand = Literal["high", "medium", "low"]
SortDirection = Literal["asc", "desc"] | None

SORT_KEYS = ("file_name", "name", "email", "rating", "uploaded_at")
RATING_BANDS = ("high", "medium", "low")
PAGE_SIZES = (5, 10, 20, 50)
PAGE_LINKS = 7


def rating_band(rating: int | None) -> RatingBand | None:
    """Bucket a 1-10 rating: high >= 8, medium 5-7, low < 5."""
    if rating is None:
        return None
    if rating >= 8:
        return "high"
    if rating >= 5:
        return "medium"
    return "low"


@dataclass
class ResumeRow:
    """One history-table row built from a summary projection."""

    id: int
    file_name: str
    name: str | None
    email: str | None
    rating: int | None
    uploaded_at: datetime | None
    improvement_summary: str | None = None

    @property
    def band(self) -> RatingBand | None:
        return rating_band(self.rating)

    @classmethod
    def from_summary(cls, summary: dict[str, Any]) -> "ResumeRow":
        uploaded_at = summary.get("uploaded_at")
        if isinstance(uploaded_at, str):
            uploaded_at = datetime.fromisoformat(uploaded_at)
        return cls(
            id=summary["id"],
            file_name=summary.get("file_name") or "",
            name=summary.get("name"),
            email=summary.get("email"),
            rating=summary.get("resume_rating"),
            uploaded_at=uploaded_at,
            improvement_summary=summary.get("improvement_summary"),
        )


def filter_rows(
    rows: list[ResumeRow],
    query: str = "",
    band: str | None = None,
) -> list[ResumeRow]:
    """Case-insensitive substring search over file name, name and email,
    combined with an optional rating-band filter."""
    needle = query.strip().lower()
    if band not in RATING_BANDS:
        band = None

    def matches(row: ResumeRow) -> bool:
        if band and row.band != band:
            return False
        if not needle:
            return True
        return any(
            needle in (value or "").lower()
            for value in (row.file_name, row.name, row.email)
        )

    return [row for row in rows if matches(row)]


def _sort_value(row: ResumeRow, key: str) -> Any:
    if key == "uploaded_at":
        return row.uploaded_at.timestamp() if row.uploaded_at else 0.0
    if key == "rating":
        return row.rating or 0
    return (getattr(row, key) or "").lower()


def sort_rows(
    rows: list[ResumeRow],
    key: str,
    direction: SortDirection,
) -> list[ResumeRow]:
    """Stable sort; an unset direction keeps the incoming order."""
    if direction not in ("asc", "desc") or key not in SORT_KEYS:
        return list(rows)
    return sorted(
        rows,
        key=lambda row: _sort_value(row, key),
        reverse=direction == "desc",
    )


def next_sort(
    current_key: str,
    current_direction: SortDirection,
    clicked_key: str,
) -> tuple[str, SortDirection]:
    """Header click cycle: a new column starts ascending, the same column
    goes asc -> desc -> unsorted -> asc."""
    if clicked_key != current_key:
        return clicked_key, "asc"
    if current_direction == "asc":
        return clicked_key, "desc"
    if current_direction == "desc":
        return clicked_key, None
    return clicked_key, "asc"


@dataclass
class Page:
    """One page of rows plus the numbers the pager needs."""

    items: list[ResumeRow]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    page_links: list[int] = field(default_factory=list)

    @property
    def first_index(self) -> int:
        if not self.total_items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        return min(self.page * self.page_size, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(rows: list[ResumeRow], page: int, page_size: int) -> Page:
    """Slice ``rows`` to one page, clamping the page number into range."""
    if page_size not in PAGE_SIZES:
        page_size = 10
    total_pages = max(1, -(-len(rows) // page_size))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size
    return Page(
        items=rows[start:start + page_size],
        page=page,
        page_size=page_size,
        total_items=len(rows),
        total_pages=total_pages,
        page_links=list(range(1, min(total_pages, PAGE_LINKS) + 1)),
    )


@dataclass
class TableState:
    """Query-string state of the history table."""

    query: str = ""
    band: str | None = None
    sort_key: str = "uploaded_at"
    sort_direction: SortDirection = "desc"
    page: int = 1
    page_size: int = 10

    def apply(self, rows: list[ResumeRow]) -> Page:
        filtered = filter_rows(rows, self.query, self.band)
        ordered = sort_rows(filtered, self.sort_key, self.sort_direction)
        return paginate(ordered, self.page, self.page_size)


def pretty_bytes(size: int) -> str:
    """Human-readable file size (``1.5 MB``)."""
    if size <= 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    if index == 0:
        return f"{int(value)} B"
    return f"{value:.1f} {units[index]}"


def format_average(stats: dict | None) -> str:
    """Average rating to one decimal, or ``N/A`` before any upload."""
    if not stats or not stats.get("total_resumes"):
        return "N/A"
    return f"{float(stats.get('avg_rating') or 0):.1f}"
