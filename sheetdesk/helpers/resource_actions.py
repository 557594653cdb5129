"""
Per-file actions on the listing: delete, regenerate download link, edit and
download, plus the detail and edit surfaces they act on.

Every action holds a per-file lock for its duration. While a file is busy its
row actions are disabled, and a second action on it is refused without
calling the service. Actions on different files may run at the same time.
Local state changes only after the service acknowledges.
"""

import asyncio
import logging
import webbrowser
from contextlib import contextmanager
from typing import Callable, Optional, Set

from sheetdesk.helpers.api_client import SheetApiClient
from sheetdesk.helpers.errors import ServerError, SheetDeskError, StateError
from sheetdesk.helpers.models import EditDraft, ResourceStatus, ViewModel
from sheetdesk.helpers.notifications import NotificationCenter
from sheetdesk.helpers.resource_store import ResourceStore

logger = logging.getLogger(__name__)

CONFIRM_DELETE_MESSAGE = "Are you sure you want to delete this file?"

MESSAGES = {
    "busy": "Another action is already running for this file.",
    "deleted": "The file was deleted successfully.",
    "delete_failed": "Could not delete the file.",
    "link_regenerated": "The download link was refreshed.",
    "link_failed": "Could not regenerate the download link.",
    "updated": "File updated successfully.",
    "update_failed": "Could not update the file.",
    "no_link": "This file has no download link.",
    "download_failed": "Could not download the file.",
    "no_edit": "There is no open edit to save.",
}


def _always_confirm(message: str) -> bool:
    return True


class ResourceActions:
    """
    Mutation gateway for the files in a ``ResourceStore``.

    Parameters
    ----------
    api : SheetApiClient
        Service client; its blocking calls run in a worker thread.
    store : ResourceStore
        Shared set of view-models updated on success.
    notifications : NotificationCenter
        Receives one success or error message per action.
    confirm : callable, optional
        ``confirm(message) -> bool`` asked before a delete.
    open_link : callable, optional
        Opens a download link in a new browser context.
    """

    def __init__(
        self,
        api: SheetApiClient,
        store: ResourceStore,
        notifications: NotificationCenter,
        confirm: Callable[[str], bool] = _always_confirm,
        open_link: Callable[[str], object] = webbrowser.open_new_tab,
    ):
        self.api = api
        self.store = store
        self.notifications = notifications
        self.confirm = confirm
        self.open_link = open_link
        self._busy: Set[str] = set()
        self.detail_id: Optional[str] = None
        self.draft: Optional[EditDraft] = None
        self.saving = False

    # ------------------------------------------------------------------
    # Single-flight guard
    # ------------------------------------------------------------------

    def is_busy(self, resource_id: str) -> bool:
        return resource_id in self._busy

    @contextmanager
    def _hold(self, resource_id: str):
        if resource_id in self._busy:
            raise StateError(f"File {resource_id} is busy")
        self._busy.add(resource_id)
        try:
            yield
        finally:
            self._busy.discard(resource_id)

    def _refuse(self, error: StateError, message: str) -> bool:
        logger.warning("%s", error)
        self.notifications.error(message)
        return False

    # ------------------------------------------------------------------
    # Detail view
    # ------------------------------------------------------------------

    @property
    def detail(self) -> Optional[ViewModel]:
        if self.detail_id is None:
            return None
        return self.store.get(self.detail_id)

    def open_detail(self, resource_id: str) -> Optional[ViewModel]:
        self.detail_id = resource_id if self.store.get(resource_id) else None
        return self.detail

    def close_detail(self):
        self.detail_id = None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def delete(self, resource_id: str) -> bool:
        if self.is_busy(resource_id):
            return self._refuse(StateError(f"Delete refused, {resource_id} is busy"), MESSAGES["busy"])
        if not self.confirm(CONFIRM_DELETE_MESSAGE):
            return False

        with self._hold(resource_id):
            try:
                await asyncio.to_thread(self.api.delete_resource, resource_id)
            except SheetDeskError as e:
                logger.error("Failed to delete %s: %s", resource_id, e)
                self.notifications.error(MESSAGES["delete_failed"])
                return False

            self.store.remove(resource_id)
            if self.detail_id == resource_id:
                self.close_detail()
            if self.draft is not None and self.draft.resource_id == resource_id:
                self.draft = None
            logger.info("Deleted file %s", resource_id)
            self.notifications.success(MESSAGES["deleted"])
            return True

    async def regenerate_link(self, resource_id: str) -> Optional[str]:
        if self.is_busy(resource_id):
            self._refuse(StateError(f"Regenerate refused, {resource_id} is busy"), MESSAGES["busy"])
            return None

        with self._hold(resource_id):
            try:
                data = await asyncio.to_thread(self.api.regenerate_link, resource_id)
                link = data.get("s3Url") if isinstance(data, dict) else None
                if not link:
                    raise ServerError("Regenerate response did not include a link")
            except SheetDeskError as e:
                logger.error("Failed to regenerate link for %s: %s", resource_id, e)
                self.notifications.error(MESSAGES["link_failed"])
                return None

            item = self.store.get(resource_id)
            if item is not None:
                self.store.replace(item.with_resource(link=link))
            self.notifications.success(MESSAGES["link_regenerated"])
            return link

    def begin_edit(self, resource_id: str) -> Optional[EditDraft]:
        item = self.store.get(resource_id)
        if item is None:
            return None
        self.draft = EditDraft.from_view_model(item)
        return self.draft

    def cancel_edit(self):
        self.draft = None

    async def save_edit(self, draft: Optional[EditDraft] = None) -> bool:
        """Send the draft; on success merge it and close the edit surface."""
        draft = draft or self.draft
        if draft is None:
            return self._refuse(StateError("No edit in progress"), MESSAGES["no_edit"])
        if self.is_busy(draft.resource_id):
            return self._refuse(StateError(f"Edit refused, {draft.resource_id} is busy"), MESSAGES["busy"])

        self.saving = True
        try:
            with self._hold(draft.resource_id):
                try:
                    await asyncio.to_thread(self.api.update_resource, draft.resource_id, draft.to_payload())
                except SheetDeskError as e:
                    # The edit surface stays open so the user can retry.
                    logger.error("Failed to update %s: %s", draft.resource_id, e)
                    self.notifications.error(MESSAGES["update_failed"])
                    return False

                item = self.store.get(draft.resource_id)
                if item is not None:
                    self.store.replace(item.with_resource(name=draft.name, status=draft.status))
                self.notifications.success(MESSAGES["updated"])
                if self.draft is not None and self.draft.resource_id == draft.resource_id:
                    self.draft = None
                return True
        finally:
            self.saving = False

    def download(self, resource_id: str) -> bool:
        """Open the file's download link. No link means no request at all."""
        item = self.store.get(resource_id)
        if item is None or not item.link:
            self.notifications.error(MESSAGES["no_link"])
            return False
        if self.is_busy(resource_id):
            return self._refuse(StateError(f"Download refused, {resource_id} is busy"), MESSAGES["busy"])

        with self._hold(resource_id):
            try:
                self.open_link(item.link)
            except webbrowser.Error as e:
                logger.error("Failed to open download link for %s: %s", resource_id, e)
                self.notifications.error(MESSAGES["download_failed"])
                return False
        return True

    def detail_state(self) -> Optional[str]:
        """Which branch the detail view renders."""
        item = self.detail
        if item is None:
            return None
        if item.status is ResourceStatus.COMPLETED:
            return "preview" if item.preview is not None else "preview_missing"
        if item.status is ResourceStatus.PROCESSING:
            return "processing"
        return "processing_error"
