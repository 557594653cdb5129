import asyncio
from datetime import datetime
from typing import Callable, Optional

import pandas as pd
import streamlit as st

from sheetdesk import frontend_config as config
from sheetdesk.helpers.list_view import ELLIPSIS, ListPage
from sheetdesk.helpers.models import Notification, NotificationKind, PreviewPayload


def run_async(coro):
    """Run a controller coroutine to completion from the Streamlit script thread."""
    return asyncio.run(coro)


def format_date(value: Optional[str]) -> str:
    """ISO timestamp from the service -> dd/mm/yyyy."""
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d/%m/%Y")
    except ValueError:
        return value


def status_badge(label: str, status: str):
    """
    Display a visual status badge with theme-aware colors.
    status: 'COMPLETED', 'PROCESSING', 'ERROR'
    """
    colors = {
        'COMPLETED': '#5fca75',
        'PROCESSING': '#4B9BFF',
        'ERROR': '#FF4B4B',
    }
    icons = {
        'COMPLETED': '✅',
        'PROCESSING': '⏳',
        'ERROR': '❌',
    }
    color = colors.get(status, '#808080')
    icon = icons.get(status, '•')
    st.markdown(f"""
        <span style="background:{color};color:white;padding:2px 10px;
                     border-radius:16px;font-size:0.8rem;font-weight:600;
                     display:inline-flex;align-items:center;gap:6px;">
            {icon} {label}
        </span>
    """, unsafe_allow_html=True)


def status_label(status: str) -> str:
    return config.STATUS_LABELS.get(status, status.title())


def show_notification(notification: Optional[Notification]):
    """Render the single live notification, if any."""
    if notification is None:
        return
    if notification.kind is NotificationKind.SUCCESS:
        st.success(notification.text)
    else:
        st.error(notification.text)


def pagination_bar(page: ListPage, on_page: Callable[[int], None], key_prefix: str = "pager"):
    """Previous / page window / next buttons. Hidden for a single page."""
    if page.total_pages <= 1:
        return
    slots = ["prev"] + page.window + ["next"]
    cols = st.columns(len(slots))
    for i, (col, slot) in enumerate(zip(cols, slots)):
        with col:
            if slot == "prev":
                if st.button("‹", key=f"{key_prefix}_prev", disabled=not page.has_previous):
                    on_page(page.page - 1)
            elif slot == "next":
                if st.button("›", key=f"{key_prefix}_next", disabled=not page.has_next):
                    on_page(page.page + 1)
            elif slot == ELLIPSIS:
                st.markdown("…")
            else:
                label = f"**{slot}**" if slot == page.page else str(slot)
                if st.button(label, key=f"{key_prefix}_{i}_{slot}", disabled=slot == page.page):
                    on_page(slot)


def preview_table(preview: PreviewPayload):
    """Preview sample with numeric columns right-aligned and text columns left-aligned."""
    df = preview.to_dataframe()
    alignments = dict(zip(df.columns, preview.column_alignments()))

    def align(col: pd.Series):
        return [f"text-align: {alignments.get(col.name, 'left')}"] * len(col)

    st.dataframe(df.style.apply(align), use_container_width=True, hide_index=True)
    st.caption(
        f"Showing the first {len(preview.rows)} records. "
        f"{preview.total_rows} rows in the file."
    )


class UploadProgress:
    """Progress bar plus status text, kept in sync with an upload controller."""

    def __init__(self):
        self.progress_bar = st.progress(0)
        self.status_text = st.empty()

    def update(self, progress: int, message: str):
        self.progress_bar.progress(min(max(progress, 0), 100))
        self.status_text.text(message)

    def clear(self):
        self.progress_bar.empty()
        self.status_text.empty()
