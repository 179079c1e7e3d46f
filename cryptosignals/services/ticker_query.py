"""Search, filter, sort and paginate over the ticker collection.

The routine works on any sequence of ticker-like objects (ORM rows or plain
records exposing ``symbol``, ``description``, ``category``, ``is_enabled`` and
``created_at``). It never touches storage, so the caller decides where the
collection comes from.

Query normalisation is permissive: unknown sort fields fall back to
``symbol`` and non-numeric pagination values fall back to the defaults instead
of producing a client error.
"""
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence


DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
DEFAULT_OFFSET = 0
SUGGESTION_LIMIT = 10

# Public sort key -> attribute on the ticker record
SORT_FIELDS = {
    "symbol": "symbol",
    "description": "description",
    "createdAt": "created_at",
}
DEFAULT_SORT = "symbol"


def _parse_int(value: Any, default: int) -> int:
    """Parse an integer query value, falling back to ``default`` when it is not numeric."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_ticker(ticker: Any) -> Dict[str, Any]:
    """Serialize a ticker record into its public JSON shape."""
    return {
        "id": str(ticker.id),
        "symbol": ticker.symbol,
        "description": ticker.description,
        "category": ticker.category,
        "isEnabled": ticker.is_enabled,
        "createdAt": _isoformat(ticker.created_at),
        "updatedAt": _isoformat(ticker.updated_at),
    }


@dataclass
class TickerQuery:
    """Normalised query for the ticker listing."""

    search: Optional[str] = None
    enabled_only: bool = True
    category: Optional[str] = None
    sort: str = DEFAULT_SORT
    order: str = "asc"
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET

    @classmethod
    def from_params(
        cls,
        search: Optional[str] = None,
        enabled: Optional[str] = None,
        category: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
    ) -> "TickerQuery":
        """
        Build a query from raw query-string values.

        ``enabled`` is inverted relative to its name: only the literal ``false``
        widens the listing to disabled tickers, anything else (including
        omission) restricts it to enabled ones.
        """
        enabled_only = not (enabled is not None and enabled.strip().lower() == "false")

        sort = sort.strip() if sort else DEFAULT_SORT
        if sort not in SORT_FIELDS:
            sort = DEFAULT_SORT

        order = "desc" if order and order.strip().lower() == "desc" else "asc"

        parsed_limit = _parse_int(limit, DEFAULT_LIMIT)
        if parsed_limit < 1:
            parsed_limit = DEFAULT_LIMIT
        parsed_limit = min(parsed_limit, MAX_LIMIT)

        parsed_offset = _parse_int(offset, DEFAULT_OFFSET)
        if parsed_offset < 0:
            parsed_offset = DEFAULT_OFFSET

        return cls(
            search=_clean(search),
            enabled_only=enabled_only,
            category=_clean(category),
            sort=sort,
            order=order,
            limit=parsed_limit,
            offset=parsed_offset,
        )


@dataclass
class TickerQueryResult:
    """Envelope returned by :func:`query_tickers`."""

    data: List[Dict[str, Any]]
    count: int
    filtered_count: int
    query: TickerQuery
    suggestions: List[Dict[str, Any]] = field(default_factory=list)
    processing_time_ms: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_more(self) -> bool:
        return self.query.offset + self.query.limit < self.filtered_count

    @property
    def total_pages(self) -> int:
        if self.filtered_count == 0:
            return 0
        return math.ceil(self.filtered_count / self.query.limit)

    @property
    def current_page(self) -> int:
        return self.query.offset // self.query.limit + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "count": self.count,
            "filtered_count": self.filtered_count,
            "pagination": {
                "limit": self.query.limit,
                "offset": self.query.offset,
                "has_more": self.has_more,
                "total_pages": self.total_pages,
                "current_page": self.current_page,
            },
            "search": {
                "term": self.query.search,
                "suggestions": self.suggestions,
                "autocomplete": [s["symbol"] for s in self.suggestions],
            },
            "filters": {
                "enabled": self.query.enabled_only,
                "category": self.query.category,
                "sort": self.query.sort,
                "order": self.query.order,
            },
            "meta": {
                "timestamp": self.timestamp.isoformat(),
                "cached": False,
                "processing_time_ms": self.processing_time_ms,
            },
        }


def _matches(ticker: Any, query: TickerQuery) -> bool:
    if query.enabled_only and not ticker.is_enabled:
        return False

    if query.category is not None:
        if (ticker.category or "").lower() != query.category.lower():
            return False

    if query.search is not None:
        term = query.search.lower()
        symbol = (ticker.symbol or "").lower()
        description = (ticker.description or "").lower()
        if term not in symbol and term not in description:
            return False

    return True


def _sort_key(attribute: str):
    if attribute == "created_at":
        return lambda ticker: ticker.created_at
    return lambda ticker: getattr(ticker, attribute) or ""


def query_tickers(tickers: Sequence[Any], query: TickerQuery) -> TickerQueryResult:
    """
    Filter, sort and paginate a ticker collection.

    Args:
        tickers: Full, unfiltered ticker collection
        query: Normalised query (see :meth:`TickerQuery.from_params`)

    Returns:
        TickerQueryResult holding the requested page and its annotations
    """
    started = time.perf_counter()

    filtered = [ticker for ticker in tickers if _matches(ticker, query)]

    # sorted() is stable, including with reverse=True
    filtered = sorted(
        filtered,
        key=_sort_key(SORT_FIELDS[query.sort]),
        reverse=query.order == "desc",
    )

    page = filtered[query.offset:query.offset + query.limit]

    suggestions = []
    if query.search is not None:
        suggestions = [
            {
                "symbol": ticker.symbol,
                "description": ticker.description,
                "category": ticker.category,
            }
            for ticker in filtered[:SUGGESTION_LIMIT]
        ]

    elapsed_ms = round((time.perf_counter() - started) * 1000, 3)

    return TickerQueryResult(
        data=[serialize_ticker(ticker) for ticker in page],
        count=len(tickers),
        filtered_count=len(filtered),
        query=query,
        suggestions=suggestions,
        processing_time_ms=elapsed_ms,
    )
