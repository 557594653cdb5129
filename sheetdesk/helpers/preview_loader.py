"""
Lazy preview loading.

Previews are expensive on the service side, so they are fetched the first
time a file is opened and memoized on its view-model. At most one fetch per
file id is in flight; callers arriving while it runs share its result.
"""

import asyncio
import logging
from typing import Dict, Optional

from sheetdesk.helpers.api_client import SheetApiClient
from sheetdesk.helpers.errors import SheetDeskError
from sheetdesk.helpers.models import PreviewPayload, ResourceStatus
from sheetdesk.helpers.notifications import NotificationCenter
from sheetdesk.helpers.resource_store import ResourceStore

logger = logging.getLogger(__name__)

PREVIEW_FAILED_MESSAGE = "Could not load the data preview."


class PreviewLoader:
    def __init__(self, api: SheetApiClient, store: ResourceStore, notifications: NotificationCenter):
        self.api = api
        self.store = store
        self.notifications = notifications
        self._in_flight: Dict[str, asyncio.Task] = {}

    def is_loading(self, resource_id: str) -> bool:
        task = self._in_flight.get(resource_id)
        return task is not None and not task.done()

    async def load(self, resource_id: str) -> Optional[PreviewPayload]:
        """
        Return the preview for a processed file, fetching it if needed.

        Returns None without fetching when the file is unknown or not
        COMPLETED, and None after a failed fetch (an error notification is
        shown and the view-model is left as it was).
        """
        item = self.store.get(resource_id)
        if item is None or item.status is not ResourceStatus.COMPLETED:
            logger.debug("Skipping preview for %s (not a completed file)", resource_id)
            return None
        if item.preview is not None:
            return item.preview

        task = self._in_flight.get(resource_id)
        if task is None or task.done():
            task = asyncio.get_running_loop().create_task(self._fetch(resource_id))
            self._in_flight[resource_id] = task
            task.add_done_callback(lambda t: self._forget(resource_id, t))
        return await asyncio.shield(task)

    def _forget(self, resource_id: str, task: asyncio.Task):
        if self._in_flight.get(resource_id) is task:
            del self._in_flight[resource_id]

    async def _fetch(self, resource_id: str) -> Optional[PreviewPayload]:
        try:
            data = await asyncio.to_thread(self.api.get_preview, resource_id)
            payload = PreviewPayload.from_dict(data)
        except SheetDeskError as e:
            logger.error("Failed to load preview for %s: %s", resource_id, e)
            self.notifications.error(PREVIEW_FAILED_MESSAGE)
            return None

        current = self.store.get(resource_id)
        if current is None:
            # Deleted while the fetch was running.
            return payload
        self.store.replace(current.with_preview(payload))
        return payload
