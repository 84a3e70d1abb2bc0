"""
table_view.py
Streamlit rendering for a TableEngine: search box, table, "Showing x to y of z", Prev/Next.

Components take `st` as a parameter and keep no state of their own; the engine
lives in session state, one per list view.
"""

from __future__ import annotations

from typing import Any, Callable, MutableMapping, Sequence

from datatable import PAGE_SIZE, ColumnDescriptor, SearchKey, TableEngine, to_frame

ENGINES_KEY = "table_engines"


def get_table_engine(
    session_state: MutableMapping,
    view_key: str,
    search_key: str | SearchKey | None = None,
    pagination: bool = True,
    page_size: int = PAGE_SIZE,
) -> TableEngine:
    """Return the engine owned by `view_key`, creating it on first use."""
    engines = session_state.setdefault(ENGINES_KEY, {})
    engine = engines.get(view_key)
    if engine is None:
        engine = TableEngine(search_key=search_key, pagination=pagination, page_size=page_size)
        engines[view_key] = engine
    else:
        engine.set_search_key(search_key)
    return engine


def drop_table_engines(session_state: MutableMapping, keep: str | None = None) -> None:
    """Discard engines of views the user navigated away from."""
    engines = session_state.get(ENGINES_KEY) or {}
    for view_key in list(engines):
        if view_key != keep:
            del engines[view_key]


def render_data_table(
    st,
    engine: TableEngine,
    records: Sequence[Any],
    columns: Sequence[ColumnDescriptor],
    *,
    key: str,
    t: Callable[..., str],
    show_search: bool = True,
    on_row_click: Callable[[Any], None] | None = None,
) -> list:
    """
    Render one list view and return the records currently visible.
    With `on_row_click`, rows become selectable and the callback receives the
    record of the selected row.
    """
    if show_search:
        query = st.text_input(t("search"), key=f"{key}_search", placeholder=t("search"))
        engine.set_query(query)

    visible = engine.get_visible_records(records)

    if visible and on_row_click is not None:
        event = st.dataframe(
            to_frame(visible, columns),
            use_container_width=True,
            hide_index=True,
            on_select="rerun",
            selection_mode="single-row",
            key=f"{key}_table",
        )
        rows = event.selection.rows if event is not None else []
        if rows and rows[0] < len(visible):
            on_row_click(visible[rows[0]])
    elif visible:
        st.dataframe(to_frame(visible, columns), use_container_width=True, hide_index=True)
    else:
        st.caption(t("noResults"))

    info = engine.page_info
    if engine.pagination and info.total_pages > 1:
        c1, c2, c3 = st.columns([3, 1, 1])
        c1.caption(t("showing", start=info.start_index + 1, end=info.end_index, total=info.total_filtered_count))
        c2.button(
            t("previous"),
            key=f"{key}_prev",
            on_click=engine.previous_page,
            disabled=info.current_page == 1,
        )
        c3.button(
            t("next"),
            key=f"{key}_next",
            on_click=engine.next_page,
            disabled=info.current_page == info.total_pages,
        )

    return visible
