"""Table view projection: sort and page-window over loaded rows."""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from recordview.models.table_view import DisplayRow, SortDirection, TablePage, TableViewState


def is_blank(value: Any) -> bool:
    return value is None or value == ""


def _sort_key(value: Any) -> Tuple[int, Any]:
    # Values of different kinds never compare directly: numbers, then text, then anything else.
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value.lower())
    return (2, str(value).lower())


def sort_rows(
    rows: Sequence[Dict[str, Any]],
    sort_field: Optional[str],
    sort_direction: SortDirection = SortDirection.ASC,
) -> List[Dict[str, Any]]:
    """Stable sort on one field. Blank values always sort last."""
    if not sort_field:
        return list(rows)
    present = [row for row in rows if not is_blank(row.get(sort_field))]
    blank = [row for row in rows if is_blank(row.get(sort_field))]
    present.sort(
        key=lambda row: _sort_key(row.get(sort_field)),
        reverse=sort_direction == SortDirection.DESC,
    )
    return present + blank


def total_pages(row_count: int, page_size: int) -> int:
    """Number of pages; an empty table still has one page."""
    if row_count <= 0 or page_size <= 0:
        return 1
    return math.ceil(row_count / page_size)


def clamp_page(page_index: int, row_count: int, page_size: int) -> int:
    return max(1, min(page_index, total_pages(row_count, page_size)))


def project(state: TableViewState) -> TablePage:
    """Produce the visible window for ``state``.

    Row numbers are computed here on every call and never stored on rows.
    """
    row_count = len(state.rows)
    pages = total_pages(row_count, state.page_size)
    page_index = clamp_page(state.page_index, row_count, state.page_size)
    ordered = sort_rows(state.rows, state.sort_field, state.sort_direction)

    start = (page_index - 1) * state.page_size
    window = ordered[start:start + state.page_size]
    return TablePage(
        rows=[DisplayRow(row_number=start + i + 1, record=row) for i, row in enumerate(window)],
        page_index=page_index,
        page_size=state.page_size,
        total_pages=pages,
        total_records=row_count,
        page_start=0 if row_count == 0 else start + 1,
        page_end=min(page_index * state.page_size, row_count),
        sort_field=state.sort_field,
        sort_direction=state.sort_direction,
    )
