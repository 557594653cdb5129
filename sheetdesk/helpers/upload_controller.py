"""
Upload controller.

Lifecycle of a single CSV upload::

    IDLE -> VALIDATING -> STAGED -> TRANSFERRING -> AWAITING_CONFIRMATION -> COMPLETE
                                 \\-> FAILED (file stays staged, retry allowed)

Removing the file once the service has accepted it deletes the remote copy
first; if that delete fails nothing local changes.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence

from sheetdesk import frontend_config as config
from sheetdesk.helpers.api_client import SheetApiClient
from sheetdesk.helpers.errors import ServerError, SheetDeskError, TransportError, ValidationError
from sheetdesk.helpers.models import CandidateFile, UploadPhase, UploadSession
from sheetdesk.helpers.notifications import NotificationCenter
from sheetdesk.helpers.progress import SyntheticTicker, TransferProgress

logger = logging.getLogger(__name__)

MESSAGES = {
    "bad_extension": "Please upload CSV files only.",
    "too_large": "The file is too large. The maximum size is {limit}MB.",
    "busy": "Wait for the current upload to finish.",
    "remove_first": "Remove the current file before selecting another one.",
    "no_file": "Select a CSV file first.",
    "connection": "Error: Could not connect to the server. Check your connection.",
    "server": "Error {status}: {message}",
    "generic": "Error: {message}",
    "done": "Your file was processed successfully!",
    "removed": "File removed successfully!",
    "remove_failed": "Could not remove the file from the server.",
}

_REMOVABLE = (
    UploadPhase.STAGED,
    UploadPhase.FAILED,
    UploadPhase.AWAITING_CONFIRMATION,
    UploadPhase.COMPLETE,
)


def validate_file(file: CandidateFile, max_size: int = config.MAX_UPLOAD_SIZE,
                  extensions: Sequence[str] = config.ALLOWED_EXTENSIONS):
    """Raise ``ValidationError`` unless the file is an accepted CSV within the size limit."""
    if not file.name.lower().endswith(tuple(extensions)):
        raise ValidationError(MESSAGES["bad_extension"])
    if file.size > max_size:
        limit = max_size / 1024 / 1024
        raise ValidationError(MESSAGES["too_large"].format(limit=f"{limit:g}"))


def describe_failure(error: BaseException) -> str:
    """User-facing text for a failed transfer."""
    if isinstance(error, ServerError):
        return MESSAGES["server"].format(status=error.status_code or "?",
                                         message=error.message or "Processing failed")
    if isinstance(error, TransportError):
        return MESSAGES["connection"]
    return MESSAGES["generic"].format(message=str(error) or "Operation failed!")


class UploadController:
    def __init__(
        self,
        api: SheetApiClient,
        notifications: Optional[NotificationCenter] = None,
        max_size: int = config.MAX_UPLOAD_SIZE,
        tick_step: int = config.PROGRESS_TICK_STEP,
        tick_interval: float = config.PROGRESS_TICK_SECONDS,
        completion_delay: float = config.COMPLETION_DELAY_SECONDS,
    ):
        self.api = api
        self.notifications = notifications or NotificationCenter()
        self.max_size = max_size
        self.completion_delay = completion_delay
        self.session = UploadSession()
        self.removing = False
        self._closed = False

        self._progress = TransferProgress()
        self._ticker = SyntheticTicker(self._progress, self._set_progress,
                                       step=tick_step, interval=tick_interval)
        self._completion: Optional[asyncio.TimerHandle] = None
        self._listeners: List[Callable[[UploadSession], None]] = []

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def phase(self) -> UploadPhase:
        return self.session.phase

    @property
    def progress(self) -> int:
        return self.session.progress

    def subscribe(self, callback: Callable[[UploadSession], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def _emit(self):
        for callback in list(self._listeners):
            callback(self.session)

    def _set_phase(self, phase: UploadPhase):
        logger.debug("upload phase %s -> %s", self.session.phase.value, phase.value)
        self.session.phase = phase
        self._emit()

    def _set_progress(self, value: int):
        self.session.progress = value
        self._emit()

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    def select_files(self, files: Sequence[Any]) -> bool:
        """Files dropped on the drop zone; only the first one is used."""
        if not files:
            return False
        return self.pick_file(files[0])

    def pick_file(self, file: Any) -> bool:
        """Stage a file from the picker (``CandidateFile``, path or Streamlit upload)."""
        if self.session.phase is UploadPhase.TRANSFERRING or self.removing:
            self.notifications.error(MESSAGES["busy"])
            return False
        if self.session.resource_id is not None:
            self.notifications.error(MESSAGES["remove_first"])
            return False

        candidate = self._as_candidate(file)
        previous = self.session.phase
        self._set_phase(UploadPhase.VALIDATING)
        try:
            validate_file(candidate, self.max_size)
        except ValidationError as e:
            logger.info("Rejected %s: %s", candidate.name, e)
            self.session.validation_error = str(e)
            self.notifications.error(str(e))
            self._set_phase(previous)
            return False

        self.session.file = candidate
        self.session.validation_error = None
        self.session.last_error = None
        self._progress.reset()
        self.session.progress = 0
        self._set_phase(UploadPhase.STAGED)
        return True

    @staticmethod
    def _as_candidate(file: Any) -> CandidateFile:
        if isinstance(file, CandidateFile):
            return file
        if isinstance(file, str):
            return CandidateFile.from_path(file)
        return CandidateFile.from_uploaded(file)

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    async def process(self) -> bool:
        """Upload the staged file. Returns True once the service accepted it."""
        if self.session.file is None:
            self.notifications.error(MESSAGES["no_file"])
            return False
        if self.session.phase not in (UploadPhase.STAGED, UploadPhase.FAILED):
            self.notifications.error(MESSAGES["busy"])
            return False

        loop = asyncio.get_running_loop()
        self.session.last_error = None
        self._set_progress(self._progress.reset())
        self._set_phase(UploadPhase.TRANSFERRING)
        self._ticker.start()

        def on_bytes(sent: int, total: int):
            # Called from the upload thread.
            loop.call_soon_threadsafe(self._on_bytes, sent, total)

        try:
            data = await asyncio.to_thread(self.api.upload, self.session.file, on_bytes)
        except asyncio.CancelledError:
            logger.info("Upload of %s cancelled", self.session.file.name)
            if not self._closed:
                self._set_progress(self._progress.reset())
                self._set_phase(UploadPhase.STAGED)
            raise
        except Exception as e:
            if self._closed:
                return False
            message = describe_failure(e)
            logger.error("Upload of %s failed: %s", self.session.file.name, e)
            self.session.last_error = message
            self._set_progress(self._progress.reset())
            self._set_phase(UploadPhase.FAILED)
            self.notifications.error(message)
            return False
        finally:
            self._ticker.stop()

        if self._closed:
            logger.info("Controller closed during upload; ignoring the response")
            return False
        self.session.resource_id = str(data["id"])
        logger.info("Upload accepted as file %s", self.session.resource_id)
        self._set_progress(self._progress.complete())
        self._set_phase(UploadPhase.AWAITING_CONFIRMATION)
        self._completion = loop.call_later(self.completion_delay, self._finish)
        return True

    def _on_bytes(self, sent: int, total: int):
        if self._closed or self.session.phase is not UploadPhase.TRANSFERRING:
            return
        self._set_progress(self._progress.on_bytes(sent, total))

    def _finish(self):
        self._completion = None
        if self._closed or self.session.phase is not UploadPhase.AWAITING_CONFIRMATION:
            return
        self._set_phase(UploadPhase.COMPLETE)
        self.notifications.success(MESSAGES["done"])

    async def wait_until_complete(self):
        """Wait out the short confirmation delay after a successful transfer."""
        while self.session.phase is UploadPhase.AWAITING_CONFIRMATION:
            await asyncio.sleep(self.completion_delay / 5 or 0.01)

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    async def remove(self) -> bool:
        """Unstage the file, deleting the remote copy first if the service has one."""
        if self.session.phase is UploadPhase.TRANSFERRING or self.removing:
            self.notifications.error(MESSAGES["busy"])
            return False
        if self.session.phase not in _REMOVABLE:
            return False

        resource_id = self.session.resource_id
        if resource_id is not None:
            self.removing = True
            self._emit()
            try:
                await asyncio.to_thread(self.api.delete_resource, resource_id)
            except SheetDeskError as e:
                logger.error("Failed to delete uploaded file %s: %s", resource_id, e)
                self.notifications.error(MESSAGES["remove_failed"])
                return False
            finally:
                self.removing = False
                self._emit()
            self.notifications.success(MESSAGES["removed"])

        self._reset()
        return True

    def _reset(self):
        self._ticker.stop()
        self._cancel_completion()
        self._progress.reset()
        self.session = UploadSession()
        self._emit()

    def _cancel_completion(self):
        if self._completion is not None:
            self._completion.cancel()
            self._completion = None

    def close(self):
        """Tear down timers; safe to call more than once. Late responses are ignored."""
        self._closed = True
        self._ticker.stop()
        self._cancel_completion()
        self.notifications.close()
        self._listeners.clear()
