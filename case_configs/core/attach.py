"""
Attaching catalog entries to a case.

Labels are unique within a case's attached set. Requested entries whose
label is already attached (or already claimed earlier in the same request)
are reported as duplicates instead of being inserted.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .errors import CaseClosedError, NotFoundError
from case_configs.storage.models import CatalogEntry
from case_configs.storage.repository import CaseConfigRepository

logger = logging.getLogger(__name__)

ALL_ADDED_MESSAGE = "All records added successfully."
NONE_ADDED_MESSAGE = "No records were added. All selected configs are already added to the Case."
PARTIAL_ADDED_PREFIX = "Records added, duplicate records were not added: "


@dataclass(frozen=True)
class AttachResult:
    """Outcome of one attach call."""
    total_added: int
    total_duplicates: int
    message: str
    duplicate_labels: Tuple[str, ...] = field(default_factory=tuple)


def partition_by_label(
    requested: Sequence[CatalogEntry],
    attached_labels: Sequence[str]
) -> Tuple[List[CatalogEntry], List[str]]:
    """Split requested entries into new entries and duplicate labels.

    The first entry carrying a label claims it; any later entry with the
    same label is a duplicate, as is any label already attached.

    Returns:
        Tuple of (entries to insert, duplicate labels), both in request order
    """
    claimed = set(attached_labels)
    new_entries: List[CatalogEntry] = []
    duplicates: List[str] = []
    for entry in requested:
        if entry.label in claimed:
            duplicates.append(entry.label)
        else:
            claimed.add(entry.label)
            new_entries.append(entry)
    return new_entries, duplicates


def build_attach_message(total_added: int, duplicate_labels: Sequence[str]) -> str:
    """Render the summary shown to the user after an attach."""
    if total_added and duplicate_labels:
        return PARTIAL_ADDED_PREFIX + ", ".join(duplicate_labels)
    if total_added:
        return ALL_ADDED_MESSAGE
    return NONE_ADDED_MESSAGE


def attach_entries(
    case_id: int,
    entry_ids: Sequence[int],
    repository: CaseConfigRepository
) -> AttachResult:
    """Attach catalog entries to a case, skipping labels already attached.

    Unknown catalog ids are ignored. The insert is all-or-nothing: if it
    fails, nothing from this call persists.

    Args:
        case_id: Case receiving the entries
        entry_ids: Catalog entry ids selected by the user
        repository: Record store

    Returns:
        AttachResult with counts and the user-facing message

    Raises:
        NotFoundError: If the case does not exist
        CaseClosedError: If the case is closed
        DataAccessError: If a query or the bulk insert fails
    """
    case = repository.get_case(case_id)
    if case is None:
        raise NotFoundError(f"Case {case_id} not found")
    if case.is_closed:
        raise CaseClosedError(f"Case {case_id} is closed; no configs can be added")

    if not entry_ids:
        return AttachResult(total_added=0, total_duplicates=0, message=NONE_ADDED_MESSAGE)

    attached_labels = [entry.label for entry in repository.get_attached_entries(case_id)]
    requested = repository.get_catalog_entries(entry_ids)
    if len(requested) < len(entry_ids):
        logger.info(
            "Ignoring %d unknown catalog id(s) for case %s",
            len(entry_ids) - len(requested), case_id
        )

    new_entries, duplicates = partition_by_label(requested, attached_labels)
    repository.insert_attached_entries(case_id, new_entries)

    logger.info(
        "Attached %d config(s) to case %s, skipped %d duplicate(s)",
        len(new_entries), case_id, len(duplicates)
    )
    return AttachResult(
        total_added=len(new_entries),
        total_duplicates=len(duplicates),
        message=build_attach_message(len(new_entries), duplicates),
        duplicate_labels=tuple(duplicates)
    )
