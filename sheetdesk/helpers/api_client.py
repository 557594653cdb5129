"""
HTTP client for the CSV file service.

Thin, blocking wrapper around ``requests``. Every method either returns the
decoded response or raises one of:

- ``TransportError`` when no response was received (connection refused,
  DNS failure, timeout);
- ``ServerError`` for non-2xx responses, carrying the status code and the
  service's ``message`` (or ``detail``) text.

Controllers call it through ``asyncio.to_thread``.
"""

import io
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from sheetdesk import frontend_config as config
from sheetdesk.helpers.errors import ServerError, SheetDeskError, TransportError
from sheetdesk.helpers.models import CandidateFile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def get_api_base(session_state: Optional[Dict[str, Any]] = None) -> str:
    """Per-session override first, then the environment default."""
    custom = (session_state or {}).get("custom_api")
    return (custom or config.API_BASE).rstrip("/")


class _ProgressReader(io.RawIOBase):
    """File-like request body that reports how many bytes were read so far."""

    def __init__(self, body: bytes, callback: Optional[ProgressCallback]):
        self._buffer = io.BytesIO(body)
        self._total = len(body)
        self._sent = 0
        self._callback = callback

    def __len__(self):
        return self._total

    def readable(self):
        return True

    def read(self, size=-1):
        chunk = self._buffer.read(size)
        if chunk:
            self._sent += len(chunk)
            if self._callback:
                self._callback(self._sent, self._total)
        return chunk


class SheetApiClient:
    """Client for ``{base_url}{resource_path}`` endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        resource_path: str = config.RESOURCE_PATH,
        timeout: Optional[float] = config.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or config.API_BASE).rstrip("/")
        self.resource_path = "/" + resource_path.strip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def list_resources(self) -> List[Dict[str, Any]]:
        data = self._request("GET", "")
        if not isinstance(data, list):
            raise ServerError("Expected a list of files from the service")
        return data

    def get_preview(self, resource_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/{resource_id}/preview")

    def update_resource(self, resource_id: str, payload: Dict[str, Any]) -> Any:
        return self._request("PUT", f"/{resource_id}", json=payload)

    def delete_resource(self, resource_id: str) -> Any:
        return self._request("DELETE", f"/{resource_id}")

    def regenerate_link(self, resource_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/{resource_id}/regenerate-url")

    def upload(self, file: CandidateFile, on_progress: Optional[ProgressCallback] = None) -> Dict[str, Any]:
        """
        Send the file as multipart/form-data under the ``file`` field.

        ``on_progress(sent, total)`` is called from the sending thread as the
        body is streamed.
        """
        request = requests.Request(
            "POST",
            self._url("/upload"),
            files={"file": (file.name, file.read(), file.content_type)},
        )
        prepared = self.session.prepare_request(request)
        body = prepared.body if isinstance(prepared.body, bytes) else prepared.body.encode("utf-8")
        prepared.body = _ProgressReader(body, on_progress)
        prepared.headers["Content-Length"] = str(len(body))

        logger.info("Uploading %s (%d bytes)", file.name, len(body))
        try:
            response = self.session.send(prepared, timeout=self.timeout)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise TransportError(str(e)) from e
        except requests.exceptions.RequestException as e:
            raise SheetDeskError(str(e)) from e
        if response.status_code not in (200, 201):
            raise ServerError(self._error_message(response), response.status_code)
        data = self._decode(response)
        if not isinstance(data, dict) or not data.get("id"):
            raise ServerError("Upload response did not include a file id", response.status_code)
        return data

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, suffix: str) -> str:
        return f"{self.base_url}{self.resource_path}{suffix}"

    def _request(self, method: str, suffix: str, **kwargs) -> Any:
        url = self._url(suffix)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError(str(e)) from e
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise SheetDeskError(str(e)) from e

        if not response.ok:
            message = self._error_message(response)
            logger.warning("%s %s -> %s %s", method, url, response.status_code, message)
            raise ServerError(message, response.status_code)
        return self._decode(response)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or response.reason or "Request failed"
        if isinstance(data, dict):
            message = data.get("message") or data.get("detail")
            if isinstance(message, list):
                message = "; ".join(str(m) for m in message)
            if message:
                return str(message)
        return response.text or "Request failed"
