"""
SheetDesk Data Models.

Client-side records for CSV files kept by the processing service, their
enriched view-models, preview payloads and the state of a single upload.
Wire keys follow the service's JSON (camelCase); attributes are snake_case.
"""

import math
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from sheetdesk.helpers.errors import ServerError


# ============================================================================
# REMOTE RESOURCES
# ============================================================================

class ResourceStatus(str, Enum):
    """Processing lifecycle of a file on the service."""
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: Any) -> "ResourceStatus":
        text = str(value or "").upper()
        if text == "PENDING":
            return cls.PROCESSING
        try:
            return cls(text)
        except ValueError:
            # Anything the client doesn't know is shown as a failed file.
            return cls.ERROR


@dataclass(frozen=True)
class RemoteResource:
    """Server-authoritative record of one uploaded CSV file."""
    id: str
    name: str
    status: ResourceStatus = ResourceStatus.PROCESSING
    link: Optional[str] = None
    error: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    processed_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RemoteResource":
        if not isinstance(data, dict) or not data.get("id"):
            raise ServerError(f"Malformed file record: {data!r}")
        return cls(
            id=str(data["id"]),
            name=data.get("filename") or "",
            status=ResourceStatus.parse(data.get("status")),
            link=data.get("s3Url") or None,
            error=data.get("error") or None,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            processed_at=data.get("processedAt"),
        )


# ============================================================================
# PREVIEW PAYLOAD
# ============================================================================

class CellKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    EMPTY = "empty"


@dataclass(frozen=True)
class PreviewCell:
    """One preview value, tagged as text or number so it can be aligned."""
    kind: CellKind
    value: Any
    text: str

    @classmethod
    def parse(cls, raw: Any) -> "PreviewCell":
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return cls(CellKind.EMPTY, None, "")
        if isinstance(raw, bool):
            return cls(CellKind.TEXT, raw, str(raw))
        if isinstance(raw, (int, float)):
            return cls(CellKind.NUMBER, raw, str(raw))
        text = str(raw)
        # float() also takes digit separators like "1_000"; CSV data never does.
        if "_" in text:
            return cls(CellKind.TEXT, text, text)
        try:
            number = float(text.strip())
        except ValueError:
            return cls(CellKind.TEXT, text, text)
        if math.isnan(number) or math.isinf(number):
            return cls(CellKind.TEXT, text, text)
        return cls(CellKind.NUMBER, number, text)

    @property
    def is_numeric(self) -> bool:
        return self.kind is CellKind.NUMBER


@dataclass(frozen=True)
class PreviewPayload:
    """
    Sampled view of a processed file.

    ``rows`` is a bounded sample; ``total_rows`` counts the whole file and may
    be larger than ``len(rows)``.
    """
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[PreviewCell, ...], ...]
    total_rows: int = 0
    score_1: float = 0.0
    score_2: float = 0.0
    final_score: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PreviewPayload":
        if not isinstance(data, dict) or not isinstance(data.get("headers"), list):
            raise ServerError("Malformed preview payload")
        try:
            headers = tuple(str(h) for h in data["headers"])
            rows = tuple(
                tuple(PreviewCell.parse(cell) for cell in row)
                for row in data.get("rows") or []
            )
            return cls(
                headers=headers,
                rows=rows,
                total_rows=int(data.get("totalRows") or len(rows)),
                score_1=float(data.get("nota1Media") or 0),
                score_2=float(data.get("nota2Media") or 0),
                final_score=float(data.get("notaFinalMedia") or 0),
            )
        except (TypeError, ValueError) as e:
            raise ServerError(f"Malformed preview payload: {e}") from e

    def column_alignments(self) -> List[str]:
        """Right-align columns whose non-empty cells are all numeric."""
        alignments = []
        for index in range(len(self.headers)):
            cells = [row[index] for row in self.rows
                     if index < len(row) and row[index].kind is not CellKind.EMPTY]
            numeric = bool(cells) and all(cell.is_numeric for cell in cells)
            alignments.append("right" if numeric else "left")
        return alignments

    def to_dataframe(self) -> pd.DataFrame:
        records = [[cell.value for cell in row] for row in self.rows]
        width = len(self.headers)
        records = [(r + [None] * width)[:width] for r in records]
        return pd.DataFrame(records, columns=list(self.headers))


# ============================================================================
# VIEW MODELS
# ============================================================================

@dataclass(frozen=True)
class ViewModel:
    """A remote resource plus client-derived fields used for display."""
    resource: RemoteResource
    category: str
    rows: int = 0
    columns: int = 0
    score_1: float = 0.0
    score_2: float = 0.0
    final_score: float = 0.0
    preview: Optional[PreviewPayload] = None

    @property
    def id(self) -> str:
        return self.resource.id

    @property
    def name(self) -> str:
        return self.resource.name

    @property
    def status(self) -> ResourceStatus:
        return self.resource.status

    @property
    def link(self) -> Optional[str]:
        return self.resource.link

    @property
    def error(self) -> Optional[str]:
        return self.resource.error

    @property
    def upload_date(self) -> Optional[str]:
        return self.resource.created_at

    def with_preview(self, payload: PreviewPayload) -> "ViewModel":
        return replace(
            self,
            rows=payload.total_rows,
            columns=len(payload.headers),
            score_1=payload.score_1,
            score_2=payload.score_2,
            final_score=payload.final_score,
            preview=payload,
        )

    def with_resource(self, **changes) -> "ViewModel":
        return replace(self, resource=replace(self.resource, **changes))


@dataclass
class EditDraft:
    """Working copy of the editable fields while the edit form is open."""
    resource_id: str
    name: str
    status: ResourceStatus

    @classmethod
    def from_view_model(cls, item: ViewModel) -> "EditDraft":
        status = (ResourceStatus.PROCESSING
                  if item.status is ResourceStatus.PROCESSING
                  else ResourceStatus.COMPLETED)
        return cls(resource_id=item.id, name=item.name, status=status)

    def to_payload(self) -> Dict[str, str]:
        return {"filename": self.name, "status": self.status.value}


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    text: str
    expires_at: float = 0.0


# ============================================================================
# UPLOAD SESSION
# ============================================================================

class UploadPhase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    STAGED = "staged"
    TRANSFERRING = "transferring"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class CandidateFile:
    """A file chosen for upload. ``reader`` returns its bytes on demand."""
    name: str
    size: int
    reader: Callable[[], bytes] = field(repr=False, default=lambda: b"")
    content_type: str = "text/csv"

    def read(self) -> bytes:
        return self.reader()

    @classmethod
    def from_path(cls, path: str) -> "CandidateFile":
        def _read():
            with open(path, "rb") as f:
                return f.read()
        return cls(name=os.path.basename(path), size=os.path.getsize(path), reader=_read)

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "CandidateFile":
        return cls(name=name, size=len(data), reader=lambda: data)

    @classmethod
    def from_uploaded(cls, uploaded_file: Any) -> "CandidateFile":
        """Wrap a Streamlit ``UploadedFile``."""
        return cls(
            name=uploaded_file.name,
            size=uploaded_file.size,
            reader=uploaded_file.getvalue,
            content_type=getattr(uploaded_file, "type", None) or "text/csv",
        )


@dataclass
class UploadSession:
    phase: UploadPhase = UploadPhase.IDLE
    file: Optional[CandidateFile] = None
    validation_error: Optional[str] = None
    progress: int = 0
    resource_id: Optional[str] = None
    last_error: Optional[str] = None

    @property
    def has_file(self) -> bool:
        return self.file is not None
