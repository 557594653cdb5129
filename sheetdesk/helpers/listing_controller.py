"""
Controller behind the file listing page.

Owns the shared ``ResourceStore`` and the current ``ListQuery`` and wires the
preview loader and per-file actions to them. Pages render from ``page()``,
which re-derives the visible slice from the store on every call.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from sheetdesk import frontend_config as config
from sheetdesk.helpers import list_view
from sheetdesk.helpers.api_client import SheetApiClient
from sheetdesk.helpers.errors import SheetDeskError
from sheetdesk.helpers.list_view import ListPage, ListQuery
from sheetdesk.helpers.models import PreviewPayload, ViewModel
from sheetdesk.helpers.notifications import NotificationCenter
from sheetdesk.helpers.preview_loader import PreviewLoader
from sheetdesk.helpers.resource_actions import ResourceActions
from sheetdesk.helpers.resource_store import ResourceStore
from sheetdesk.helpers.transform import to_view_model

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load files from the API."


class ListingController:
    def __init__(
        self,
        api: SheetApiClient,
        notifications: Optional[NotificationCenter] = None,
        store: Optional[ResourceStore] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        open_link: Optional[Callable[[str], object]] = None,
        page_size: int = config.PAGE_SIZE,
    ):
        self.api = api
        self.notifications = notifications or NotificationCenter()
        self.store = store or ResourceStore()
        self.previews = PreviewLoader(api, self.store, self.notifications)

        action_kwargs = {}
        if confirm is not None:
            action_kwargs["confirm"] = confirm
        if open_link is not None:
            action_kwargs["open_link"] = open_link
        self.actions = ResourceActions(api, self.store, self.notifications, **action_kwargs)

        self.query = ListQuery(page_size=page_size)
        self.loading = False
        self.load_error: Optional[str] = None
        self.store.subscribe(self._reclamp)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch the whole collection and replace the store contents."""
        self.loading = True
        try:
            records = await asyncio.to_thread(self.api.list_resources)
            items = []
            for record in records:
                try:
                    items.append(to_view_model(record))
                except SheetDeskError as e:
                    logger.warning("Skipping malformed file record: %s", e)
        except SheetDeskError as e:
            logger.error("Failed to load files: %s", e)
            self.load_error = LOAD_FAILED_MESSAGE
            return False
        finally:
            self.loading = False

        self.store.set_all(items)
        self.load_error = None
        logger.info("Loaded %d files", len(self.store))
        return True

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def set_search(self, search: str):
        self.query = self.query.with_search(search)

    def set_category(self, category: str):
        self.query = self.query.with_category(category)

    def toggle_sort(self, sort_field: str):
        self.query = self.query.toggle_sort(sort_field)

    def go_to_page(self, page: int):
        total = self.page().total_pages
        self.query = self.query.with_page(list_view.clamp_page(page, total))

    def previous_page(self):
        self.go_to_page(self.query.page - 1)

    def next_page(self):
        self.go_to_page(self.query.page + 1)

    def page(self) -> ListPage:
        return list_view.build_page(self.store.items, self.query)

    def categories(self) -> List[str]:
        return list_view.category_options(self.store.items)

    def stats(self) -> Dict[str, Any]:
        return list_view.summarize(self.store.items)

    def _reclamp(self):
        # Deleting the last items of the last page must not strand the view on an empty page.
        filtered = list_view.filter_items(self.store.items, self.query.search, self.query.category)
        total = list_view.total_pages_for(len(filtered), self.query.page_size)
        page = list_view.clamp_page(self.query.page, total)
        if page != self.query.page:
            self.query = self.query.with_page(page)

    # ------------------------------------------------------------------
    # Detail view and actions
    # ------------------------------------------------------------------

    async def view_file(self, resource_id: str) -> Optional[ViewModel]:
        """Open the detail view and load the preview on first view."""
        item = self.actions.open_detail(resource_id)
        if item is None:
            return None
        await self.previews.load(resource_id)
        return self.actions.detail

    def close_view(self):
        self.actions.close_detail()

    def detail_state(self) -> Optional[str]:
        if self.actions.detail_id is not None and self.previews.is_loading(self.actions.detail_id):
            return "loading"
        return self.actions.detail_state()

    async def load_preview(self, resource_id: str) -> Optional[PreviewPayload]:
        return await self.previews.load(resource_id)

    async def delete(self, resource_id: str) -> bool:
        return await self.actions.delete(resource_id)

    async def regenerate_link(self, resource_id: str) -> Optional[str]:
        return await self.actions.regenerate_link(resource_id)

    async def save_edit(self) -> bool:
        return await self.actions.save_edit()

    def download(self, resource_id: str) -> bool:
        return self.actions.download(resource_id)

    def close(self):
        self.notifications.close()
