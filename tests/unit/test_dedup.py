"""Unit tests for the generation dedup ledger."""

from pocketid_operator.utils.dedup import GenerationLedger


class TestGenerationLedger:
    """Test UID to generation bookkeeping."""

    def test_unknown_uid_is_not_processed(self):
        assert not GenerationLedger().is_processed("uid-1", 1)

    def test_recorded_generation_is_processed(self):
        ledger = GenerationLedger()
        ledger.record("uid-1", 4)

        assert ledger.is_processed("uid-1", 4)
        assert not ledger.is_processed("uid-1", 5)
        assert not ledger.is_processed("uid-2", 4)

    def test_only_last_generation_counts(self):
        """Recording a newer generation replaces the older one."""
        ledger = GenerationLedger()
        ledger.record("uid-1", 1)
        ledger.record("uid-1", 2)

        assert not ledger.is_processed("uid-1", 1)
        assert len(ledger) == 1

    def test_forget(self):
        ledger = GenerationLedger()
        ledger.record("uid-1", 1)
        ledger.forget("uid-1")
        ledger.forget("never-seen")

        assert "uid-1" not in ledger
        assert len(ledger) == 0
