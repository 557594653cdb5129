"""
SheetDesk File Listing Page.
Shows every uploaded spreadsheet with search, category filter, sorting and
pagination, plus per-file view / download / edit / delete / link refresh.
"""

import streamlit as st

from sheetdesk import frontend_config as config
from sheetdesk.helpers.api_client import SheetApiClient, get_api_base
from sheetdesk.helpers.listing_controller import ListingController
from sheetdesk.helpers.models import ResourceStatus, ViewModel
from sheetdesk.helpers.notifications import NotificationCenter
from sheetdesk.helpers.resource_actions import CONFIRM_DELETE_MESSAGE
from sheetdesk.helpers.ui_patterns import (
    format_date,
    pagination_bar,
    preview_table,
    run_async,
    show_notification,
    status_badge,
    status_label,
)

SORT_LABELS = {
    "name": "Name",
    "upload_date": "Upload date",
    "status": "Status",
    "category": "Category",
    "rows": "Rows",
    "final_score": "Final score",
}


def _confirmed_in_session(message: str) -> bool:
    # The confirmation dialog sets this flag right before the delete runs.
    return bool(st.session_state.pop("delete_confirmed", False))


def _open_in_session(url: str):
    st.session_state.download_url = url


def get_listing_controller() -> ListingController:
    api_base = get_api_base(st.session_state)
    controller = st.session_state.get("listing_controller")
    if controller is None or controller.api.base_url != api_base:
        if controller is not None:
            controller.close()
        controller = ListingController(
            SheetApiClient(api_base),
            NotificationCenter(),
            confirm=_confirmed_in_session,
            open_link=_open_in_session,
        )
        st.session_state.listing_controller = controller
        with st.spinner("Loading files..."):
            run_async(controller.refresh())
    return controller


def _show_stats(controller: ListingController):
    stats = controller.stats()
    cols = st.columns(4)
    with cols[0]:
        st.metric("Files", stats["total"])
    with cols[1]:
        st.metric("Rows (previewed)", f"{stats['total_rows']:,}")
    with cols[2]:
        st.metric("Mean final score", f"{stats['mean_final_score']:.2f}")
    with cols[3]:
        st.metric("Categories", stats["categories"])


def _show_filters(controller: ListingController):
    cols = st.columns([3, 2, 2, 1])
    with cols[0]:
        search = st.text_input("🔍 Search by file name", value=controller.query.search)
        if search != controller.query.search:
            controller.set_search(search)
    with cols[1]:
        options = controller.categories()
        current = controller.query.category if controller.query.category in options else config.ALL_CATEGORIES
        category = st.selectbox("Category", options, index=options.index(current))
        if category != controller.query.category:
            controller.set_category(category)
    with cols[2]:
        fields = list(SORT_LABELS)
        current_field = controller.query.sort_field if controller.query.sort_field in fields else fields[0]
        field = st.selectbox("Sort by", fields, index=fields.index(current_field),
                             format_func=SORT_LABELS.get)
        if field != controller.query.sort_field:
            controller.toggle_sort(field)
    with cols[3]:
        arrow = "⬆️" if controller.query.sort_direction.value == "asc" else "⬇️"
        st.write("")
        if st.button(arrow, help="Flip sort direction"):
            controller.toggle_sort(controller.query.sort_field)
            st.rerun()


def _show_row(controller: ListingController, item: ViewModel):
    busy = controller.actions.is_busy(item.id)
    cols = st.columns([3, 2, 2, 2, 1, 4])
    with cols[0]:
        st.write(f"📄 **{item.name}**")
    with cols[1]:
        st.write(format_date(item.upload_date))
    with cols[2]:
        status_badge(status_label(item.status.value), item.status.value)
    with cols[3]:
        st.write(item.category)
    with cols[4]:
        st.write(f"{item.final_score:.1f}" if item.final_score else "-")
    with cols[5]:
        actions = st.columns(5)
        if actions[0].button("👁️", key=f"view_{item.id}", help="View file", disabled=busy):
            run_async(controller.view_file(item.id))
            st.rerun()
        if actions[1].button("⬇️", key=f"download_{item.id}", help="Download file",
                             disabled=busy or not item.link):
            controller.download(item.id)
            st.rerun()
        if actions[2].button("✏️", key=f"edit_{item.id}", help="Edit file", disabled=busy):
            controller.actions.begin_edit(item.id)
            st.rerun()
        if actions[3].button("🗑️", key=f"delete_{item.id}", help="Delete file", disabled=busy):
            st.session_state.confirm_delete_id = item.id
            st.rerun()
        if item.status is ResourceStatus.COMPLETED and not item.link:
            if actions[4].button("🔄", key=f"regen_{item.id}", help="Regenerate download link",
                                 disabled=busy):
                run_async(controller.regenerate_link(item.id))
                st.rerun()


def _show_delete_confirmation(controller: ListingController):
    resource_id = st.session_state.get("confirm_delete_id")
    if not resource_id:
        return
    item = controller.store.get(resource_id)
    if item is None:
        st.session_state.confirm_delete_id = None
        return
    st.warning(f"{CONFIRM_DELETE_MESSAGE} ({item.name})")
    cols = st.columns(2)
    if cols[0].button("Yes, delete", key="confirm_delete_yes"):
        st.session_state.delete_confirmed = True
        st.session_state.confirm_delete_id = None
        run_async(controller.delete(resource_id))
        st.rerun()
    if cols[1].button("Cancel", key="confirm_delete_no"):
        st.session_state.confirm_delete_id = None
        st.rerun()


def _show_edit_form(controller: ListingController):
    draft = controller.actions.draft
    if draft is None:
        return
    with st.form("edit_file_form"):
        st.markdown("#### ✏️ Edit file")
        name = st.text_input("File name", value=draft.name)
        statuses = list(config.EDITABLE_STATUSES)
        status = st.selectbox("Status", statuses, index=statuses.index(draft.status.value))
        cols = st.columns(2)
        save = cols[0].form_submit_button("Save", disabled=controller.actions.saving)
        cancel = cols[1].form_submit_button("Cancel")
    if save:
        draft.name = name
        draft.status = ResourceStatus(status)
        run_async(controller.save_edit())
        st.rerun()
    if cancel:
        controller.actions.cancel_edit()
        st.rerun()


def _show_detail(controller: ListingController):
    item = controller.actions.detail
    if item is None:
        return
    with st.container(border=True):
        cols = st.columns([4, 1])
        cols[0].markdown(f"### {item.name}")
        if cols[1].button("✖ Close", key="close_detail"):
            controller.close_view()
            st.rerun()
        st.caption(f"Uploaded {format_date(item.upload_date)} · {item.category}")

        state = controller.detail_state()
        if state == "loading":
            st.info("Loading preview...")
        elif state == "preview":
            metrics = st.columns(4)
            metrics[0].metric("Rows", item.rows)
            metrics[1].metric("Columns", item.columns)
            metrics[2].metric("Score 1 (mean)", f"{item.score_1:.2f}")
            metrics[3].metric("Final score (mean)", f"{item.final_score:.2f}")
            preview_table(item.preview)
            if item.link:
                st.link_button("⬇️ Download CSV", item.link)
        elif state == "preview_missing":
            st.warning("Could not load the data preview. Download the file to see all of its data.")
            if st.button("Retry preview", key="retry_preview"):
                run_async(controller.load_preview(item.id))
                st.rerun()
        elif state == "processing":
            st.info("⏳ Processing file...")
        else:
            st.error("Error while processing this file.")
            if item.error:
                st.caption(item.error)


def show_file_listing():
    controller = get_listing_controller()

    st.subheader("📋 Uploaded spreadsheets")
    show_notification(controller.notifications.current)

    if controller.load_error:
        st.error(controller.load_error)
        if st.button("Retry"):
            run_async(controller.refresh())
            st.rerun()
        return

    download_url = st.session_state.pop("download_url", None)
    if download_url:
        st.link_button("⬇️ Open download link", download_url)

    _show_stats(controller)
    _show_filters(controller)
    _show_delete_confirmation(controller)
    _show_edit_form(controller)

    page = controller.page()
    if not page.items:
        st.info("No files match the current filters.")
    for item in page.items:
        _show_row(controller, item)

    def on_page(number: int):
        controller.go_to_page(number)
        st.rerun()

    pagination_bar(page, on_page)
    _show_detail(controller)

    if st.button("🔄 Reload list"):
        with st.spinner("Loading files..."):
            run_async(controller.refresh())
        st.rerun()
