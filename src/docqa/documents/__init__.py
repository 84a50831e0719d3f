"""
Documents — registry and lifecycle coordination.

Public API
----------
- :class:`DocumentCoordinator` — ingest and remove documents.
- :class:`DocumentRegistry` — injected in-process document store.
- :class:`Document`, :class:`DocumentStatus` — records.
"""

from docqa.documents.coordinator import DocumentCoordinator
from docqa.documents.models import Document, DocumentStatus
from docqa.documents.registry import DocumentRegistry

__all__ = ["Document", "DocumentCoordinator", "DocumentRegistry", "DocumentStatus"]
