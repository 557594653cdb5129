"""
Map raw file records from the service into display view-models.
"""

import hashlib
from typing import Any, Dict, Iterable, List, Sequence, Union

from sheetdesk import frontend_config as config
from sheetdesk.helpers.models import RemoteResource, ViewModel


def assign_category(resource_id: str, labels: Sequence[str] = config.CATEGORY_LABELS) -> str:
    """Pick a display category from the id, so it stays the same across refetches."""
    digest = hashlib.sha256(resource_id.encode("utf-8")).digest()
    return labels[int.from_bytes(digest[:8], "big") % len(labels)]


def to_view_model(record: Union[Dict[str, Any], RemoteResource]) -> ViewModel:
    """Build a view-model with empty aggregates; they are filled once a preview is merged."""
    resource = record if isinstance(record, RemoteResource) else RemoteResource.from_dict(record)
    return ViewModel(resource=resource, category=assign_category(resource.id))


def to_view_models(records: Iterable[Union[Dict[str, Any], RemoteResource]]) -> List[ViewModel]:
    return [to_view_model(r) for r in records]
