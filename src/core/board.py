"""Feedback board: the boundary operations consumed by chat integrations."""

from __future__ import annotations

from typing import List, Optional

from core.config import DedupConfig
from core.models import BUGS, FEATURES, CreateResult, Record
from core.ports import TableStorePort
from core.repository import RecordId, RecordRepository


class FeedbackBoard:
    """Holds one repository per record kind.

    The two tables are independent: each repository serializes its own
    load-mutate-save cycles, so bug and feature operations never block
    each other.
    """

    def __init__(self, bugs: RecordRepository, features: RecordRepository) -> None:
        if bugs.kind != BUGS.name or features.kind != FEATURES.name:
            raise ValueError("FeedbackBoard expects a bugs and a features repository")
        self._bugs = bugs
        self._features = features

    @classmethod
    def from_stores(
        cls,
        bugs_store: TableStorePort,
        features_store: TableStorePort,
        dedup_config: Optional[DedupConfig] = None,
    ) -> "FeedbackBoard":
        return cls(
            bugs=RecordRepository(bugs_store, dedup_config),
            features=RecordRepository(features_store, dedup_config),
        )

    @property
    def bugs(self) -> RecordRepository:
        return self._bugs

    @property
    def features(self) -> RecordRepository:
        return self._features

    def create_bug(self, user_id: str, username: str, description: str, steps: str) -> CreateResult:
        return self._bugs.create(user_id, username, description, steps)

    def create_feature(self, user_id: str, username: str, feature: str, reason: str) -> CreateResult:
        return self._features.create(user_id, username, feature, reason)

    def list_bugs(self) -> List[Record]:
        return self._bugs.list_all()

    def list_features(self) -> List[Record]:
        return self._features.list_all()

    def upvote_bug(self, record_id: RecordId) -> bool:
        return self._bugs.upvote(record_id)

    def upvote_feature(self, record_id: RecordId) -> bool:
        return self._features.upvote(record_id)
