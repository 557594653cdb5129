"""Per-file action tests"""
import asyncio
import webbrowser
from unittest.mock import Mock

import pytest

from sheetdesk.helpers.errors import ServerError, TransportError
from sheetdesk.helpers.models import NotificationKind, ResourceStatus
from sheetdesk.helpers.resource_actions import MESSAGES, ResourceActions


@pytest.fixture
def actions(api, store, notifications):
    return ResourceActions(api, store, notifications, open_link=Mock())


@pytest.mark.unit
class TestSingleFlight:

    @pytest.mark.asyncio
    async def test_second_delete_is_refused(self, actions, api, store, notifications, gate):
        api.delete_resource.side_effect = lambda resource_id: gate.wait(5)

        first = asyncio.create_task(actions.delete("1"))
        await asyncio.sleep(0.05)
        assert actions.is_busy("1")

        assert await actions.delete("1") is False
        assert notifications.current.text == MESSAGES["busy"]

        gate.set()
        assert await first is True
        assert api.delete_resource.call_count == 1
        assert store.get("1") is None
        assert not actions.is_busy("1")

    @pytest.mark.asyncio
    async def test_other_files_are_not_blocked(self, actions, api, gate):
        api.delete_resource.side_effect = lambda resource_id: gate.wait(5) if resource_id == "1" else None

        first = asyncio.create_task(actions.delete("1"))
        await asyncio.sleep(0.05)
        assert await actions.delete("3") is True

        gate.set()
        assert await first is True

    @pytest.mark.asyncio
    async def test_busy_cleared_after_failure(self, actions, api):
        api.delete_resource.side_effect = ServerError("boom", 500)

        assert await actions.delete("1") is False
        assert not actions.is_busy("1")


@pytest.mark.unit
class TestDelete:

    @pytest.mark.asyncio
    async def test_success_closes_open_detail(self, actions, api, store, notifications):
        actions.open_detail("1")
        actions.begin_edit("1")

        assert await actions.delete("1") is True

        api.delete_resource.assert_called_once_with("1")
        assert store.get("1") is None
        assert actions.detail is None
        assert actions.draft is None
        assert notifications.current.kind is NotificationKind.SUCCESS

    @pytest.mark.asyncio
    async def test_declined_confirmation_sends_nothing(self, api, store, notifications):
        actions = ResourceActions(api, store, notifications, confirm=lambda message: False)

        assert await actions.delete("1") is False

        api.delete_resource.assert_not_called()
        assert store.get("1") is not None

    @pytest.mark.asyncio
    async def test_failure_keeps_item(self, actions, api, store, notifications):
        api.delete_resource.side_effect = TransportError("down")

        assert await actions.delete("1") is False

        assert store.get("1") is not None
        assert notifications.current.text == MESSAGES["delete_failed"]


@pytest.mark.unit
class TestRegenerateLink:

    @pytest.mark.asyncio
    async def test_replaces_link(self, actions, api, store):
        api.regenerate_link.return_value = {"s3Url": "https://files.example/new.csv"}

        assert await actions.regenerate_link("1") == "https://files.example/new.csv"
        assert store.get("1").link == "https://files.example/new.csv"

    @pytest.mark.asyncio
    async def test_failure_keeps_old_link(self, actions, api, store, notifications):
        api.regenerate_link.side_effect = ServerError("expired", 500)

        assert await actions.regenerate_link("1") is None
        assert store.get("1").link == "https://files.example/1.csv"
        assert notifications.current.text == MESSAGES["link_failed"]

    @pytest.mark.asyncio
    async def test_response_without_link_is_a_failure(self, actions, api, store):
        api.regenerate_link.return_value = {}

        assert await actions.regenerate_link("1") is None
        assert store.get("1").link == "https://files.example/1.csv"


@pytest.mark.unit
class TestEdit:

    @pytest.mark.asyncio
    async def test_save_merges_and_closes(self, actions, api, store):
        draft = actions.begin_edit("1")
        draft.name = "renamed.csv"
        draft.status = ResourceStatus.PROCESSING

        assert await actions.save_edit() is True

        api.update_resource.assert_called_once_with(
            "1", {"filename": "renamed.csv", "status": "PROCESSING"})
        item = store.get("1")
        assert item.name == "renamed.csv"
        assert item.status is ResourceStatus.PROCESSING
        assert actions.draft is None
        assert actions.saving is False

    @pytest.mark.asyncio
    async def test_failure_keeps_draft_open(self, actions, api, store, notifications):
        draft = actions.begin_edit("1")
        draft.name = "renamed.csv"
        api.update_resource.side_effect = ServerError("invalid", 400)

        assert await actions.save_edit() is False

        assert actions.draft is draft
        assert store.get("1").name == "field_survey.csv"
        assert notifications.current.text == MESSAGES["update_failed"]

    @pytest.mark.asyncio
    async def test_save_without_draft_is_refused(self, actions, api):
        assert await actions.save_edit() is False
        api.update_resource.assert_not_called()

    def test_cancel_discards_draft(self, actions):
        actions.begin_edit("1")
        actions.cancel_edit()
        assert actions.draft is None


@pytest.mark.unit
class TestDownload:

    def test_opens_link(self, actions):
        assert actions.download("1") is True
        actions.open_link.assert_called_once_with("https://files.example/1.csv")

    def test_no_link_means_no_call(self, actions, notifications):
        assert actions.download("3") is False
        actions.open_link.assert_not_called()
        assert notifications.current.text == MESSAGES["no_link"]

    def test_browser_failure_is_reported(self, actions, notifications):
        actions.open_link.side_effect = webbrowser.Error("no browser")

        assert actions.download("1") is False
        assert notifications.current.text == MESSAGES["download_failed"]


@pytest.mark.unit
class TestDetailState:

    @pytest.mark.parametrize("resource_id,state", [
        ("1", "preview_missing"),
        ("2", "processing_error"),
        ("3", "processing"),
    ])
    def test_branch_per_status(self, actions, resource_id, state):
        actions.open_detail(resource_id)
        assert actions.detail_state() == state

    def test_unknown_file_has_no_detail(self, actions):
        assert actions.open_detail("missing") is None
        assert actions.detail_state() is None

    def test_error_detail_keeps_error_text(self, actions):
        item = actions.open_detail("2")
        assert item.error == "Missing column nota1"
