"""
SheetDesk Upload Page.
Lets the user pick or drop a CSV file, sends it to the processing service with
a progress bar, and removes an accepted upload (server copy first) on request.
"""

from typing import Optional

import streamlit as st

from sheetdesk.helpers.api_client import SheetApiClient, get_api_base
from sheetdesk.helpers.models import Notification, UploadPhase, UploadSession
from sheetdesk.helpers.notifications import NotificationCenter
from sheetdesk.helpers.ui_patterns import UploadProgress, run_async, show_notification
from sheetdesk.helpers.upload_controller import UploadController

PHASE_TEXT = {
    UploadPhase.TRANSFERRING: "Uploading to the API...",
    UploadPhase.AWAITING_CONFIRMATION: "Finishing up...",
    UploadPhase.COMPLETE: "✅ Complete!",
}


def get_upload_controller() -> UploadController:
    """One controller per browser session, rebuilt when the API base changes."""
    api_base = get_api_base(st.session_state)
    controller = st.session_state.get("upload_controller")
    if controller is None or controller.api.base_url != api_base:
        if controller is not None:
            controller.close()
        controller = UploadController(SheetApiClient(api_base), NotificationCenter())
        st.session_state.upload_controller = controller
        st.session_state.upload_widget_key = None
    return controller


async def _process_with_progress(controller: UploadController, view: UploadProgress) -> bool:
    unsubscribe = controller.subscribe(
        lambda session: view.update(session.progress, PHASE_TEXT.get(session.phase, ""))
    )
    try:
        accepted = await controller.process()
        if accepted:
            await controller.wait_until_complete()
        return accepted
    finally:
        unsubscribe()


def inline_error(session: UploadSession, notification: Optional[Notification]) -> Optional[str]:
    """Failure text for the page body, unless the live notification already shows it."""
    if not session.last_error:
        return None
    if notification is not None and notification.text == session.last_error:
        return None
    return session.last_error


def show_upload_page():
    """
    Handles picking a CSV file, validating and sending it to the backend,
    and removing it again if the user changes their mind.
    """
    controller = get_upload_controller()
    session = controller.session

    st.subheader("📤 Upload your survey spreadsheet")
    st.caption("Upload a CSV file with the survey data. The service computes the final score of each row.")

    show_notification(controller.notifications.current)

    if session.phase in (UploadPhase.IDLE, UploadPhase.VALIDATING) or not session.has_file:
        uploaded_file = st.file_uploader(
            "Drag and drop your CSV here, or browse",
            type=["csv"],
            key=f"sheet_uploader_{st.session_state.get('uploader_nonce', 0)}",
        )
        # The widget keeps returning the same file on every rerun; only stage it once.
        widget_key = (uploaded_file.name, uploaded_file.size) if uploaded_file is not None else None
        if uploaded_file is not None and widget_key != st.session_state.get("upload_widget_key"):
            st.session_state.upload_widget_key = widget_key
            controller.pick_file(uploaded_file)
            st.rerun()
        return

    file = session.file
    st.write(f"**File:** {file.name}")
    st.write(f"**Size:** {file.size / 1024:.1f} KB")

    if session.phase is UploadPhase.COMPLETE:
        st.progress(100)
        st.success("Upload complete. The file is now being processed.")
        if st.button("📋 View uploaded files"):
            st.session_state.current_page = "Files"
            st.rerun()
    else:
        error = inline_error(session, controller.notifications.current)
        if error:
            st.error(error)

    cols = st.columns(2)
    with cols[0]:
        process_disabled = session.phase not in (UploadPhase.STAGED, UploadPhase.FAILED)
        if st.button("🚀 Process file", disabled=process_disabled, use_container_width=True):
            view = UploadProgress()
            accepted = run_async(_process_with_progress(controller, view))
            if not accepted:
                view.clear()
            st.rerun()
    with cols[1]:
        if st.button("🗑️ Remove file", disabled=controller.removing, use_container_width=True):
            with st.spinner("Removing file..."):
                removed = run_async(controller.remove())
            if removed:
                # A fresh widget key drops the file the uploader still holds.
                st.session_state.uploader_nonce = st.session_state.get("uploader_nonce", 0) + 1
                st.session_state.upload_widget_key = None
            st.rerun()
