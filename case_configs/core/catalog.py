"""
Catalog browser view.

Pages through the catalog, keeps the user's selection and attaches it to
the active case. Publishes an AttachmentChangedEvent after every successful
attach so the attachment list can refresh.
"""

import logging
import math
from enum import Enum
from typing import List, Optional, Sequence, TypeVar

from .attach import AttachResult, attach_entries
from .broker import AttachmentChangedEvent, UpdateBroker
from .errors import NotFoundError
from case_configs.storage.models import CaseStatus, CatalogEntry
from case_configs.storage.repository import CaseConfigRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10

T = TypeVar("T")


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


def sort_by_created(records: Sequence[T], direction: SortDirection) -> List[T]:
    """Return a copy of the records ordered by ``created_at``."""
    return sorted(
        records,
        key=lambda record: record.created_at,
        reverse=direction is SortDirection.DESC
    )


def toggle_direction(direction: Optional[SortDirection]) -> SortDirection:
    """Next direction for a sort request; unsorted views load ascending."""
    if direction is SortDirection.DESC:
        return SortDirection.ASC
    return SortDirection.DESC


class CatalogBrowser:
    """Paginated, sortable view of every catalog entry for one case."""

    SOURCE = "CatalogBrowser"

    def __init__(
        self,
        case_id: int,
        repository: CaseConfigRepository,
        broker: UpdateBroker,
        page_size: int = DEFAULT_PAGE_SIZE
    ):
        if page_size <= 0:
            raise ValueError("page_size must be > 0")
        self.case_id = case_id
        self.repository = repository
        self.broker = broker
        self.page_size = page_size

        self.entries: List[CatalogEntry] = []
        self.total_records = 0
        self.current_page = 1
        self.total_pages = 1
        self.selected_ids: List[int] = []
        self.case_status: Optional[CaseStatus] = None
        self.sort_direction: Optional[SortDirection] = None

        self._subscription = broker.subscribe(self.handle_event)

    @property
    def is_prev_disabled(self) -> bool:
        return self.current_page <= 1

    @property
    def is_next_disabled(self) -> bool:
        return self.current_page >= self.total_pages

    @property
    def is_add_disabled(self) -> bool:
        return not self.selected_ids or self.case_status is CaseStatus.CLOSED

    def load(self) -> None:
        """Read the case status, the catalog size and the current page."""
        self.refresh_case()
        self.fetch_total_records()

    def refresh_case(self) -> None:
        """Re-read the case status.

        Raises:
            NotFoundError: If the case does not exist
        """
        case = self.repository.get_case(self.case_id)
        if case is None:
            raise NotFoundError(f"Case {self.case_id} not found")
        self.case_status = case.status

    def fetch_total_records(self) -> None:
        """Recount the catalog, recompute the page count and refetch the page."""
        self.total_records = self.repository.count_catalog_entries()
        self.total_pages = max(1, math.ceil(self.total_records / self.page_size))
        self.current_page = min(self.current_page, self.total_pages)
        self.fetch_page()

    def fetch_page(self) -> None:
        """Fetch the current page, re-applying any active sort."""
        offset = (self.current_page - 1) * self.page_size
        entries = self.repository.list_catalog_entries(limit=self.page_size, offset=offset)
        if self.sort_direction is not None:
            entries = sort_by_created(entries, self.sort_direction)
        self.entries = entries

    def next_page(self) -> None:
        if self.current_page < self.total_pages:
            self.current_page += 1
            self.fetch_page()

    def prev_page(self) -> None:
        if self.current_page > 1:
            self.current_page -= 1
            self.fetch_page()

    def go_to_page(self, page: int) -> None:
        """Jump to a page, clamped to the valid range."""
        self.current_page = max(1, min(page, self.total_pages))
        self.fetch_page()

    def toggle_sort(self) -> SortDirection:
        """Flip the creation-date sort of the current page."""
        self.sort_direction = toggle_direction(self.sort_direction)
        self.entries = sort_by_created(self.entries, self.sort_direction)
        return self.sort_direction

    def select(self, entry_ids: Sequence[int]) -> None:
        """Replace the current selection."""
        self.selected_ids = list(entry_ids)

    def add_selected(self) -> AttachResult:
        """Attach the selection to the case and notify other views.

        The selection is cleared and the event published as soon as the
        attach commits; a failed attach propagates with the selection intact.
        A failing page refresh afterwards still propagates, but the event
        has already gone out.
        """
        result = attach_entries(self.case_id, self.selected_ids, self.repository)
        self.selected_ids = []
        self.broker.publish(AttachmentChangedEvent(case_id=self.case_id, source=self.SOURCE))
        self.fetch_total_records()
        return result

    def handle_event(self, event: AttachmentChangedEvent) -> None:
        """React to changes made elsewhere for the same case."""
        if event.case_id != self.case_id or event.source == self.SOURCE:
            return
        logger.debug("Catalog browser for case %s refreshing after %s", self.case_id, event)
        self.refresh_case()

    def close(self) -> None:
        self._subscription.release()
