"""Upload page helper tests"""
import pytest

from sheetdesk.helpers.file_upload import inline_error
from sheetdesk.helpers.models import UploadPhase, UploadSession
from sheetdesk.helpers.notifications import NotificationCenter


@pytest.fixture
def failed_session(csv_file):
    return UploadSession(phase=UploadPhase.FAILED, file=csv_file, last_error="Error 400: Invalid CSV")


@pytest.mark.unit
class TestInlineError:

    def test_hidden_while_notification_shows_it(self, failed_session):
        center = NotificationCenter(ttl=60)
        center.error("Error 400: Invalid CSV")

        assert inline_error(failed_session, center.current) is None

    def test_shown_after_notification_expires(self, failed_session):
        assert inline_error(failed_session, None) == "Error 400: Invalid CSV"

    def test_shown_when_notification_is_about_something_else(self, failed_session):
        center = NotificationCenter(ttl=60)
        center.success("File removed successfully!")

        assert inline_error(failed_session, center.current) == "Error 400: Invalid CSV"

    def test_nothing_without_failure(self, csv_file):
        assert inline_error(UploadSession(phase=UploadPhase.STAGED, file=csv_file), None) is None
