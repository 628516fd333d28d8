"""
Process-local record of the last generation handled per resource UID.

Watch events fire for status-only changes too; comparing the generation
against this ledger lets the reconciler skip events that carry no new
intent. The ledger is never persisted: after a restart the first event for
each resource is processed again, which is safe because reconciliation is
idempotent.
"""


class GenerationLedger:
    """Mapping of resource UID to last processed generation."""

    def __init__(self) -> None:
        self._generations: dict[str, int] = {}

    def is_processed(self, uid: str, generation: int) -> bool:
        """Whether this UID/generation pair was the last one recorded."""
        return self._generations.get(uid) == generation

    def record(self, uid: str, generation: int) -> None:
        self._generations[uid] = generation

    def forget(self, uid: str) -> None:
        self._generations.pop(uid, None)

    def __len__(self) -> int:
        return len(self._generations)

    def __contains__(self, uid: object) -> bool:
        return uid in self._generations


# Shared ledger used by the event handlers
generation_ledger = GenerationLedger()
