# tests/unit/test_retention/test_purger.py
"""Unit tests for the bounded-batch purge loop."""

import math
from unittest.mock import MagicMock

import pytest


class FakeTable:
    """In-memory rows with an optional set of undeletable ids."""

    def __init__(self, count, undeletable=()):
        self.rows = [f"row-{i}" for i in range(count)]
        self.undeletable = set(undeletable)
        self.fetches = 0

    def fetch(self, limit):
        self.fetches += 1
        return self.rows[:limit]

    def delete(self, row_id):
        if row_id in self.undeletable:
            raise RuntimeError("constraint violation")
        self.rows.remove(row_id)


class TestPurgePaginated:
    """Tests for purge_paginated()."""

    @pytest.mark.parametrize("count", [0, 1, 199, 200, 201, 350, 400, 1000])
    def test_all_succeed(self, count):
        """N deletable rows: deleted == N, failed == 0, rounds == ceil(N / 200)."""
        from support_lifecycle.services.retention.purger import purge_paginated

        table = FakeTable(count)

        stats = purge_paginated("classification", lambda: table.fetch(200), table.delete, batch_size=200)

        assert stats.deleted == count
        assert stats.failed == 0
        assert stats.rounds == math.ceil(count / 200)
        assert table.rows == []

    def test_all_failing_batch_stops_after_one_round(self):
        """A batch where every delete fails should trigger the safety stop."""
        from support_lifecycle.services.retention.purger import purge_paginated

        table = FakeTable(200, undeletable=[f"row-{i}" for i in range(200)])

        stats = purge_paginated("conversation", lambda: table.fetch(200), table.delete, batch_size=200)

        assert stats.rounds == 1
        assert stats.deleted == 0
        assert stats.failed == 200
        assert table.fetches == 1

    def test_partial_failures_are_tallied(self):
        """Failures are counted and the loop keeps going while progress is made."""
        from support_lifecycle.services.retention.purger import purge_paginated

        table = FakeTable(5, undeletable=["row-1", "row-3"])

        stats = purge_paginated("email_message", lambda: table.fetch(200), table.delete, batch_size=200)

        assert stats.deleted == 3
        assert stats.failed == 2
        assert stats.rounds == 1
        assert table.rows == ["row-1", "row-3"]

    def test_stuck_rows_in_full_batches_eventually_stop(self):
        """Undeletable rows that keep reappearing end the purge once nothing else is left."""
        from support_lifecycle.services.retention.purger import purge_paginated

        table = FakeTable(4, undeletable=["row-0", "row-1"])

        stats = purge_paginated("ai_comment", lambda: table.fetch(2), table.delete, batch_size=2)

        # Round 1 fetches the two stuck rows and deletes nothing
        assert stats.rounds == 1
        assert stats.deleted == 0
        assert stats.failed == 2

    def test_failure_is_logged(self):
        from support_lifecycle.services.retention import purger

        delete_one = MagicMock(side_effect=RuntimeError("locked"))

        with pytest.MonkeyPatch.context() as mp:
            mock_logger = MagicMock()
            mp.setattr(purger, "logger", mock_logger)
            purger.purge_paginated("triage_session", lambda: ["t-1"], delete_one, batch_size=200)

        warning_messages = [call.args[0] for call in mock_logger.warning.call_args_list]
        assert "Failed to delete triage_session t-1: locked" in warning_messages
