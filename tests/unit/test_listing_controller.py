"""Listing controller tests"""
import pytest

from sheetdesk.helpers.errors import ServerError, TransportError
from sheetdesk.helpers.listing_controller import LOAD_FAILED_MESSAGE, ListingController
from sheetdesk.helpers.models import ResourceStatus
from tests.conftest import make_record


@pytest.fixture
def controller(api, notifications, records):
    api.list_resources.return_value = records
    return ListingController(api, notifications, page_size=1)


@pytest.mark.unit
class TestRefresh:

    @pytest.mark.asyncio
    async def test_loads_records_newest_first(self, controller):
        assert await controller.refresh() is True

        assert len(controller.store) == 3
        assert controller.load_error is None
        page = controller.page()
        assert page.total_pages == 3
        assert [item.id for item in page.items] == ["3"]

    @pytest.mark.asyncio
    async def test_failure_sets_load_error(self, controller, api):
        api.list_resources.side_effect = TransportError("refused")

        assert await controller.refresh() is False

        assert controller.load_error == LOAD_FAILED_MESSAGE
        assert len(controller.store) == 0
        assert controller.loading is False

    @pytest.mark.asyncio
    async def test_retry_clears_load_error(self, controller, api, records):
        api.list_resources.side_effect = [ServerError("down", 503), records]

        await controller.refresh()
        assert await controller.refresh() is True
        assert controller.load_error is None

    @pytest.mark.asyncio
    async def test_malformed_records_are_skipped(self, controller, api):
        api.list_resources.return_value = [make_record("1"), {"filename": "no_id.csv"}]

        assert await controller.refresh() is True
        assert [item.id for item in controller.store] == ["1"]

    @pytest.mark.asyncio
    async def test_pending_status_reads_as_processing(self, controller, api):
        api.list_resources.return_value = [make_record("4", status="PENDING")]

        await controller.refresh()
        assert controller.store.get("4").status is ResourceStatus.PROCESSING


@pytest.mark.unit
class TestQuery:

    @pytest.mark.asyncio
    async def test_search_resets_to_first_page(self, controller):
        await controller.refresh()
        controller.go_to_page(2)

        controller.set_search("broken")

        page = controller.page()
        assert page.page == 1
        assert page.filtered_count == 1
        assert [item.name for item in page.items] == ["broken_upload.csv"]

    @pytest.mark.asyncio
    async def test_go_to_page_is_clamped(self, controller):
        await controller.refresh()

        controller.go_to_page(10)
        assert controller.query.page == 3
        controller.go_to_page(0)
        assert controller.query.page == 1

    @pytest.mark.asyncio
    async def test_previous_and_next(self, controller):
        await controller.refresh()

        controller.next_page()
        controller.next_page()
        controller.next_page()
        assert controller.query.page == 3
        controller.previous_page()
        assert controller.query.page == 2

    @pytest.mark.asyncio
    async def test_sort_toggle(self, controller):
        await controller.refresh()

        controller.toggle_sort("name")
        assert [item.name for item in controller.page().items] == ["broken_upload.csv"]
        controller.toggle_sort("name")
        assert [item.name for item in controller.page().items] == ["quarterly_review.csv"]

    @pytest.mark.asyncio
    async def test_categories_start_with_all(self, controller):
        await controller.refresh()
        assert controller.categories()[0] == "all"


@pytest.mark.unit
class TestActions:

    @pytest.mark.asyncio
    async def test_delete_on_last_page_moves_back(self, controller):
        await controller.refresh()
        controller.go_to_page(3)
        assert [item.id for item in controller.page().items] == ["1"]

        assert await controller.delete("1") is True

        page = controller.page()
        assert page.page == 2
        assert page.total_pages == 2
        assert page.items

    @pytest.mark.asyncio
    async def test_view_file_loads_preview(self, controller, api, preview_data):
        await controller.refresh()
        api.get_preview.return_value = preview_data

        item = await controller.view_file("1")

        assert item.preview is not None
        assert controller.detail_state() == "preview"

    @pytest.mark.asyncio
    async def test_view_error_file_skips_preview(self, controller, api):
        await controller.refresh()

        item = await controller.view_file("2")

        api.get_preview.assert_not_called()
        assert item.error == "Missing column nota1"
        assert controller.detail_state() == "processing_error"

    @pytest.mark.asyncio
    async def test_close_view(self, controller):
        await controller.refresh()
        await controller.view_file("3")

        controller.close_view()
        assert controller.detail_state() is None
