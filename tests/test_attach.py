"""
Unit tests for attaching catalog entries to a case.

Covers label de-duplication, the three summary messages and the closed-case gate.
"""

import os
import shutil
import tempfile
from datetime import datetime
from unittest.mock import patch

import pytest

from case_configs.core.attach import (
    ALL_ADDED_MESSAGE,
    NONE_ADDED_MESSAGE,
    AttachResult,
    attach_entries,
    build_attach_message,
    partition_by_label,
)
from case_configs.core.errors import CaseClosedError, DataAccessError, NotFoundError
from case_configs.storage.models import CaseStatus, CatalogEntry
from case_configs.storage.repository import CaseConfigRepository, initialize_schema


class AttachTestBase:
    """Temporary database with a small catalog and one open case."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "test.db")
        initialize_schema(self.db_path)
        self.repository = CaseConfigRepository(self.db_path)
        self.ids = self.repository.insert_catalog_entries([
            {"label": "Config A", "category": "Hardware", "amount": 100.0},
            {"label": "Config B", "category": "Software", "amount": 50.0},
            {"label": "Config C", "category": "Support", "amount": 25.5},
        ])
        self.case = self.repository.create_case()

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def attached_labels(self):
        return [e.label for e in self.repository.get_attached_entries(self.case.id)]


class TestAttachEntries(AttachTestBase):
    """Test attach outcomes against the record store."""

    def test_no_overlap_adds_everything(self):
        """Fresh labels are all added."""
        result = attach_entries(self.case.id, self.ids, self.repository)

        assert result.total_added == 3
        assert result.total_duplicates == 0
        assert result.message == ALL_ADDED_MESSAGE
        assert self.attached_labels() == ["Config A", "Config B", "Config C"]

    def test_all_duplicates_adds_nothing(self):
        """Every requested label already attached."""
        attach_entries(self.case.id, self.ids, self.repository)

        result = attach_entries(self.case.id, self.ids, self.repository)

        assert result.total_added == 0
        assert result.total_duplicates == 3
        assert result.message == NONE_ADDED_MESSAGE
        assert len(self.attached_labels()) == 3

    def test_mixed_reports_duplicate_label(self):
        """3 requested, 1 already attached."""
        attach_entries(self.case.id, [self.ids[1]], self.repository)

        result = attach_entries(self.case.id, self.ids, self.repository)

        assert result.total_added == 2
        assert result.total_duplicates == 1
        assert result.duplicate_labels == ("Config B",)
        assert result.message == (
            "Records added, duplicate records were not added: Config B"
        )

    def test_second_call_reports_all_previous_labels(self):
        """Repeating an attach adds nothing and lists every label as duplicate."""
        first = attach_entries(self.case.id, self.ids[:2], self.repository)
        second = attach_entries(self.case.id, self.ids[:2], self.repository)

        assert first.total_added == 2
        assert second.total_added == 0
        assert second.duplicate_labels == ("Config A", "Config B")

    def test_empty_request(self):
        """No ids means nothing added and the 'none added' message."""
        result = attach_entries(self.case.id, [], self.repository)

        assert result == AttachResult(
            total_added=0, total_duplicates=0, message=NONE_ADDED_MESSAGE
        )

    def test_unknown_ids_are_ignored(self):
        """Ids that resolve to nothing are neither added nor duplicates."""
        result = attach_entries(self.case.id, [self.ids[0], 9999], self.repository)

        assert result.total_added == 1
        assert result.total_duplicates == 0
        assert self.attached_labels() == ["Config A"]

    def test_only_unknown_ids(self):
        """A selection that resolves to nothing adds nothing."""
        result = attach_entries(self.case.id, [9998, 9999], self.repository)

        assert result.total_added == 0
        assert result.message == NONE_ADDED_MESSAGE

    def test_same_label_twice_in_one_request(self):
        """Only the first entry with a shared label is inserted."""
        twin_id = self.repository.insert_catalog_entries([
            {"label": "Config A", "category": "Hardware", "amount": 99.0}
        ])[0]

        result = attach_entries(self.case.id, [self.ids[0], twin_id], self.repository)

        assert result.total_added == 1
        assert result.total_duplicates == 1
        attached = self.repository.get_attached_entries(self.case.id)
        assert [(a.label, a.amount) for a in attached] == [("Config A", 100.0)]

    def test_same_id_twice_in_one_request(self):
        """A repeated id counts as a duplicate of itself."""
        result = attach_entries(self.case.id, [self.ids[2], self.ids[2]], self.repository)

        assert result.total_added == 1
        assert result.total_duplicates == 1
        assert result.duplicate_labels == ("Config C",)

    def test_labels_are_scoped_per_case(self):
        """Labels attached to one case do not block another case."""
        other = self.repository.create_case()
        attach_entries(self.case.id, self.ids, self.repository)

        result = attach_entries(other.id, self.ids, self.repository)

        assert result.total_added == 3


class TestAttachFailures(AttachTestBase):
    """Test gates and failure propagation."""

    def test_missing_case(self):
        """Attaching to an unknown case is a NotFoundError."""
        with pytest.raises(NotFoundError):
            attach_entries(12345, self.ids, self.repository)

    def test_closed_case_is_rejected(self):
        """Closed cases accept no further configs."""
        self.repository.update_case_status(self.case.id, CaseStatus.CLOSED)

        with pytest.raises(CaseClosedError):
            attach_entries(self.case.id, self.ids, self.repository)

        assert self.attached_labels() == []

    def test_insert_failure_propagates_and_persists_nothing(self):
        """A failed bulk insert surfaces as DataAccessError with no rows written."""
        with patch.object(
            self.repository,
            "insert_attached_entries",
            side_effect=DataAccessError("disk I/O error")
        ):
            with pytest.raises(DataAccessError, match="disk I/O error"):
                attach_entries(self.case.id, self.ids, self.repository)

        assert self.attached_labels() == []

    def test_concurrent_insert_conflict_is_a_data_access_error(self):
        """A label attached between the duplicate check and the insert fails the batch."""
        real_lookup = self.repository.get_attached_entries

        def stale_lookup(case_id):
            # Another session attaches Config A after this read.
            labels = real_lookup(case_id)
            self.repository.insert_attached_entries(
                case_id, self.repository.get_catalog_entries([self.ids[0]])
            )
            return labels

        with patch.object(self.repository, "get_attached_entries", side_effect=stale_lookup):
            with pytest.raises(DataAccessError, match="UNIQUE"):
                attach_entries(self.case.id, self.ids, self.repository)

        assert self.attached_labels() == ["Config A"]


class TestPartition:
    """Test the pure de-duplication helpers."""

    def test_message_forms(self):
        """Exactly three message forms."""
        assert build_attach_message(2, []) == ALL_ADDED_MESSAGE
        assert build_attach_message(0, ["X"]) == NONE_ADDED_MESSAGE
        assert build_attach_message(0, []) == NONE_ADDED_MESSAGE
        assert build_attach_message(1, ["X", "Y"]) == (
            "Records added, duplicate records were not added: X, Y"
        )

    def test_partition_preserves_order(self):
        """New entries and duplicates both keep request order."""
        created = datetime(2024, 1, 1)
        requested = [
            CatalogEntry(id=i, label=label, category="Hardware", amount=1.0, created_at=created)
            for i, label in enumerate(["Config A", "Config B", "Config C", "Config A"], start=1)
        ]

        new, duplicates = partition_by_label(requested, ["Config B"])

        assert [e.id for e in new] == [1, 3]
        assert duplicates == ["Config B", "Config A"]
