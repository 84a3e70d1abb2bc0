"""
datatable.py
Search + pagination engine shared by every list view (members, classes, trainers, equipment, payments).

One TableEngine per view. It holds the search text and the current page; the
records are supplied on every render and are never mutated.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

import pandas as pd

logger = logging.getLogger(__name__)

PAGE_SIZE = 10

_UNSET = object()


# ---------- Search keys ----------

@dataclass(frozen=True)
class AllFields:
    """Search every top-level string field and every string one level inside a nested mapping."""


@dataclass(frozen=True)
class Field:
    name: str


@dataclass(frozen=True)
class Fields:
    names: tuple[str, ...]


@dataclass(frozen=True)
class Path:
    keys: tuple[str, ...]


SearchKey = Union[AllFields, Field, Fields, Path]


def parse_search_key(raw: str | SearchKey | None) -> SearchKey:
    """
    Convert the view-level string encoding into a SearchKey.
    - None / ""        -> AllFields
    - "a,b,c"          -> Fields (comma wins over dot)
    - "plan.name"      -> Path
    - "name"           -> Field
    """
    if isinstance(raw, (AllFields, Field, Fields, Path)):
        return raw
    if not raw:
        return AllFields()
    if "," in raw:
        names = tuple(t.strip() for t in raw.split(",") if t.strip())
        return Fields(names)
    if "." in raw:
        return Path(tuple(raw.split(".")))
    return Field(raw.strip())


# ---------- Record access ----------

def _is_nested(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _items(record: Any) -> Iterable[tuple[str, Any]]:
    if isinstance(record, Mapping):
        return record.items()
    if _is_nested(record):
        return ((f.name, getattr(record, f.name)) for f in dataclasses.fields(record))
    return ()


def _lookup(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    if _is_nested(record) and key in {f.name for f in dataclasses.fields(record)}:
        return getattr(record, key)
    return None


def _contains(value: Any, needle: str) -> bool:
    return isinstance(value, str) and needle in value.lower()


# ---------- Matching ----------

def matches(record: Any, needle: str, key: SearchKey) -> bool:
    """needle must already be lower-cased."""
    if isinstance(key, Field):
        return _contains(_lookup(record, key.name), needle)

    if isinstance(key, Fields):
        return any(_contains(_lookup(record, name), needle) for name in key.names)

    if isinstance(key, Path):
        value = record
        for k in key.keys:
            if value is None:
                return False
            value = _lookup(value, k)
        return _contains(value, needle)

    for _, value in _items(record):
        if _contains(value, needle):
            return True
        if _is_nested(value):
            if any(_contains(v, needle) for _, v in _items(value)):
                return True
    return False


def filter_records(records: Sequence[Any], query: str, key: SearchKey | str | None = None) -> list[Any]:
    """Stable filter. Empty query returns every record."""
    records = list(records or [])
    if not query:
        return records
    key = parse_search_key(key)
    needle = query.lower()
    return [r for r in records if matches(r, needle, key)]


def total_pages_for(count: int, page_size: int = PAGE_SIZE) -> int:
    # An empty result still reports one (empty) page.
    return max(1, math.ceil(count / page_size))


def paginate(records: Sequence[Any], page: int, page_size: int = PAGE_SIZE) -> list[Any]:
    start = (page - 1) * page_size
    return list(records[start:start + page_size])


# ---------- Columns & rendering ----------

@dataclass(frozen=True)
class ColumnDescriptor:
    header: str
    accessor: str | Callable[[Any], Any]
    # Metadata only: search breadth is decided by the SearchKey.
    searchable: bool = False


def _json_default(value: Any) -> Any:
    if _is_nested(value):
        return dict(_items(value))
    return str(value)


def render_value(record: Any, column: ColumnDescriptor) -> Any:
    """
    None -> "", nested structures -> JSON string, for either kind of accessor.
    Other results of a callable accessor (badges, concatenated names, ...) are
    returned untouched; field values are converted with str().
    """
    computed = callable(column.accessor)
    value = column.accessor(record) if computed else _lookup(record, column.accessor)
    if value is None:
        return ""
    if _is_nested(value) or isinstance(value, (list, tuple)):
        return json.dumps(value, default=_json_default, ensure_ascii=False)
    return value if computed else str(value)


def render_rows(records: Sequence[Any], columns: Sequence[ColumnDescriptor]) -> list[list[Any]]:
    return [[render_value(r, c) for c in columns] for r in records]


def to_frame(records: Sequence[Any], columns: Sequence[ColumnDescriptor]) -> pd.DataFrame:
    headers = [c.header for c in columns]
    return pd.DataFrame(render_rows(records, columns), columns=headers)


# ---------- Engine ----------

@dataclass(frozen=True)
class PageInfo:
    current_page: int = 1
    total_pages: int = 1
    total_filtered_count: int = 0
    page_size: int = PAGE_SIZE

    @property
    def start_index(self) -> int:
        return (self.current_page - 1) * self.page_size

    @property
    def end_index(self) -> int:
        return min(self.start_index + self.page_size, self.total_filtered_count)


@dataclass
class TableEngine:
    """
    Per-view search/pagination state.

    Filtering always runs before pagination, and current_page always stays in
    [1, total_pages].
    """

    search_key: SearchKey = field(default_factory=AllFields)
    pagination: bool = True
    page_size: int = PAGE_SIZE
    query: str = ""
    current_page: int = 1
    records: list = field(default_factory=list)
    _filtered: list | None = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        self.search_key = parse_search_key(self.search_key)
        self.set_page(self.current_page)

    # --- inputs ---

    def set_query(self, text: str | None) -> None:
        text = text or ""
        if text == self.query:
            return
        self.query = text
        self.current_page = 1
        self._filtered = None
        logger.debug("table query changed: %r", text)

    def set_records(self, records: Sequence[Any] | None) -> None:
        records = list(records or [])
        if records == self.records:
            return
        self.records = records
        self.current_page = 1
        self._filtered = None

    def set_search_key(self, raw: str | SearchKey | None) -> None:
        key = parse_search_key(raw)
        if key == self.search_key:
            return
        self.search_key = key
        self.current_page = 1
        self._filtered = None

    def set_page(self, n: int | float) -> None:
        if isinstance(n, float) and not math.isfinite(n):
            n = self.total_pages if n > 0 else 1
        self.current_page = min(max(1, int(n)), self.total_pages)

    def next_page(self) -> None:
        self.set_page(self.current_page + 1)

    def previous_page(self) -> None:
        self.set_page(self.current_page - 1)

    # --- derived ---

    @property
    def filtered(self) -> list:
        if self._filtered is None:
            self._filtered = filter_records(self.records, self.query, self.search_key)
        return self._filtered

    @property
    def total_pages(self) -> int:
        if not self.pagination:
            return 1
        return total_pages_for(len(self.filtered), self.page_size)

    @property
    def page_info(self) -> PageInfo:
        count = len(self.filtered)
        current = min(max(1, self.current_page), self.total_pages)
        return PageInfo(current, self.total_pages, count, self.page_size)

    def get_visible_records(
        self,
        records: Sequence[Any] | None = None,
        search_key: str | SearchKey | None | object = _UNSET,
    ) -> list:
        """
        Visible slice of the filtered records.
        Passing records/search_key replaces the current ones first (page resets when they change).
        An explicit search_key=None switches to AllFields; leaving it out keeps the current key.
        """
        if records is not None:
            self.set_records(records)
        if search_key is not _UNSET:
            self.set_search_key(search_key)

        if not self.pagination:
            return list(self.filtered)

        self.set_page(self.current_page)
        return paginate(self.filtered, self.current_page, self.page_size)
