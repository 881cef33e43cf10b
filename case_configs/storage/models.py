"""
Data models for storage layer.

Defines the catalog, attachment and case records.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CaseStatus(Enum):
    """Lifecycle of a Case. Only ever moves from OPEN to CLOSED."""
    OPEN = "Open"
    CLOSED = "Closed"


@dataclass(frozen=True)
class CatalogEntry:
    """A selectable Config record from the shared catalog.

    Managed outside this application; the core only reads these.
    """
    id: int
    label: str
    category: str
    amount: float
    created_at: datetime


@dataclass(frozen=True)
class AttachedEntry:
    """Case-specific copy of a CatalogEntry.

    The label is unique within one case's attached set. Rows are never
    modified after insertion.
    """
    id: int
    case_id: int
    label: str
    category: str
    amount: float
    created_at: datetime


@dataclass(frozen=True)
class Case:
    """Parent record that configs are attached to."""
    id: int
    status: CaseStatus
    subject: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status is CaseStatus.CLOSED
