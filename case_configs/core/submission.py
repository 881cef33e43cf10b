"""
Submitting attached entries and closing the case.
"""

import logging
from typing import Any, Dict, Sequence

from .errors import CaseClosedError, NotFoundError, SelectionError
from case_configs.sdk.submission_client import SubmissionClient
from case_configs.storage.models import AttachedEntry, CaseStatus
from case_configs.storage.repository import CaseConfigRepository

logger = logging.getLogger(__name__)


def build_submission_payload(case_id: int, entries: Sequence[AttachedEntry]) -> Dict[str, Any]:
    """Build the request body sent to the external endpoint.

    The category of each entry travels under the ``type`` key.
    """
    return {
        "caseId": case_id,
        "status": CaseStatus.CLOSED.value,
        "entries": [
            {"label": entry.label, "type": entry.category, "amount": entry.amount}
            for entry in entries
        ],
    }


def submit_attached_entries(
    attached_ids: Sequence[int],
    repository: CaseConfigRepository,
    client: SubmissionClient
) -> None:
    """Send attached entries to the external system and close their case.

    The case is taken from the first resolved entry. The case status only
    changes once the endpoint has answered 200.

    Args:
        attached_ids: Attached entry ids selected by the user
        repository: Record store
        client: Outbound submission client

    Raises:
        SelectionError: If attached_ids is empty
        NotFoundError: If none of the ids resolve, or their case is missing
        CaseClosedError: If the case is already closed
        ExternalServiceError: If the endpoint does not answer 200
        DataAccessError: If a query or the status update fails
    """
    if not attached_ids:
        raise SelectionError("Select at least one config to send")

    entries = repository.get_attached_entries_by_ids(attached_ids)
    if not entries:
        raise NotFoundError("None of the selected configs exist")

    case_id = entries[0].case_id
    case = repository.get_case(case_id)
    if case is None:
        raise NotFoundError(f"Case {case_id} not found")
    if case.is_closed:
        raise CaseClosedError(f"Case {case_id} is already closed")

    client.send(build_submission_payload(case_id, entries))

    repository.update_case_status(case_id, CaseStatus.CLOSED)
    logger.info("Submitted %d config(s) and closed case %s", len(entries), case_id)
