"""
Attachment list view.

Shows the entries attached to the active case and submits a selection of
them to the external system. Refreshes whenever another view reports a
change for the same case.
"""

import logging
from typing import List, Optional, Sequence

from .broker import AttachmentChangedEvent, UpdateBroker
from .catalog import SortDirection, sort_by_created, toggle_direction
from .errors import NotFoundError
from .submission import submit_attached_entries
from case_configs.sdk.submission_client import SubmissionClient
from case_configs.storage.models import AttachedEntry, CaseStatus
from case_configs.storage.repository import CaseConfigRepository

logger = logging.getLogger(__name__)


class AttachmentList:
    """Entries attached to one case, with submit-and-close."""

    SOURCE = "AttachmentList"

    def __init__(
        self,
        case_id: int,
        repository: CaseConfigRepository,
        broker: UpdateBroker,
        client: Optional[SubmissionClient] = None
    ):
        self.case_id = case_id
        self.repository = repository
        self.broker = broker
        self.client = client

        self.entries: List[AttachedEntry] = []
        self.selected_ids: List[int] = []
        self.case_status: Optional[CaseStatus] = None
        self.sort_direction: Optional[SortDirection] = None

        self._subscription = broker.subscribe(self.handle_event)

    @property
    def is_submit_disabled(self) -> bool:
        return self.case_status is CaseStatus.CLOSED

    def load(self) -> None:
        self.refresh()

    def refresh(self) -> None:
        """Re-read the case status and the attached entries.

        Raises:
            NotFoundError: If the case does not exist
        """
        case = self.repository.get_case(self.case_id)
        if case is None:
            raise NotFoundError(f"Case {self.case_id} not found")
        self.case_status = case.status

        entries = self.repository.get_attached_entries(self.case_id)
        if self.sort_direction is not None:
            entries = sort_by_created(entries, self.sort_direction)
        self.entries = entries

    def toggle_sort(self) -> SortDirection:
        self.sort_direction = toggle_direction(self.sort_direction)
        self.entries = sort_by_created(self.entries, self.sort_direction)
        return self.sort_direction

    def select(self, attached_ids: Sequence[int]) -> None:
        self.selected_ids = list(attached_ids)

    def submit(self) -> None:
        """Send the selection, close the case and notify other views.

        Raises:
            RuntimeError: If the list was built without a submission client
        """
        if self.client is None:
            raise RuntimeError("No submission endpoint configured")
        submit_attached_entries(self.selected_ids, self.repository, self.client)
        self.selected_ids = []
        self.broker.publish(AttachmentChangedEvent(case_id=self.case_id, source=self.SOURCE))
        self.refresh()

    def handle_event(self, event: AttachmentChangedEvent) -> None:
        """Refresh when another view changed this case's attachments."""
        if event.case_id != self.case_id or event.source == self.SOURCE:
            return
        logger.debug("Attachment list for case %s refreshing after %s", self.case_id, event)
        self.refresh()

    def close(self) -> None:
        self._subscription.release()
