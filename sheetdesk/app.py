import streamlit as st

from sheetdesk import frontend_config as config
from sheetdesk.helpers.file_listing import show_file_listing
from sheetdesk.helpers.file_upload import show_upload_page

PAGES = {
    "Upload": show_upload_page,
    "Files": show_file_listing,
}


def api_settings_panel():
    """Sidebar editor for a per-session API base."""
    st.sidebar.markdown("### ⚙️ API settings")
    current = st.session_state.custom_api or config.API_BASE
    st.sidebar.caption(f"Using `{current}`")
    if st.session_state.edit_api:
        new_api = st.sidebar.text_input("API base URL", value=current)
        if st.sidebar.button("Save API URL"):
            st.session_state.custom_api = new_api.strip() or None
            st.session_state.edit_api = False
            st.rerun()
    elif st.sidebar.button("Change API URL"):
        st.session_state.edit_api = True
        st.rerun()


def main():
    st.set_page_config(page_title="SheetDesk", layout="wide")

    # --- Session state initialization ---
    if 'current_page' not in st.session_state:
        st.session_state.current_page = "Upload"
    # allow per-session override of API base (editable in sidebar)
    if 'custom_api' not in st.session_state:
        st.session_state.custom_api = None
    if 'edit_api' not in st.session_state:
        st.session_state.edit_api = False

    st.sidebar.title("📊 SheetDesk")
    names = list(PAGES)
    choice = st.sidebar.radio("Go to", names, index=names.index(st.session_state.current_page))
    if choice != st.session_state.current_page:
        st.session_state.current_page = choice
        st.rerun()
    api_settings_panel()

    PAGES[st.session_state.current_page]()


if __name__ == "__main__":
    main()
