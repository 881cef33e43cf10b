"""
Session wiring for one case.

Owns the update broker shared by the catalog browser and the attachment
list, and tears all three down together.
"""

from typing import Optional

from .attachments import AttachmentList
from .broker import UpdateBroker
from .catalog import DEFAULT_PAGE_SIZE, CatalogBrowser
from case_configs.sdk.submission_client import SubmissionClient
from case_configs.storage.repository import CaseConfigRepository


class CaseSession:
    """Both list views for one case, connected through one broker."""

    def __init__(
        self,
        case_id: int,
        repository: CaseConfigRepository,
        client: Optional[SubmissionClient] = None,
        page_size: int = DEFAULT_PAGE_SIZE
    ):
        self.case_id = case_id
        self.broker = UpdateBroker()
        self.browser = CatalogBrowser(case_id, repository, self.broker, page_size=page_size)
        self.attachments = AttachmentList(case_id, repository, self.broker, client=client)

    def load(self) -> None:
        self.browser.load()
        self.attachments.load()

    def close(self) -> None:
        """Release both views' subscriptions and close the broker."""
        self.browser.close()
        self.attachments.close()
        self.broker.close()

    def __enter__(self) -> "CaseSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
