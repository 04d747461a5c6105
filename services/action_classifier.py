"""
Action type classification.

Resolves the free-text "action type" column into ActionType once, at
ingestion. The keyword vocabulary comes from settings since it is free text
in the deployment's language and differs between sheets.
"""

from typing import Iterable, Optional
import structlog

from config import settings
from models.order import ActionType
from utils.text_utils import clean_cell

logger = structlog.get_logger(__name__)


class ActionTypeClassifier:
    """
    Keyword mapping table: ActionType -> substrings.

    Drop keywords are checked before pickup keywords, so text matching
    both ("הורדה/העלאה") resolves to DROP.
    """

    def __init__(
        self,
        drop_keywords: Iterable[str],
        pickup_keywords: Iterable[str],
    ):
        self.mapping: tuple[tuple[ActionType, tuple[str, ...]], ...] = (
            (ActionType.DROP, tuple(k for k in drop_keywords if k)),
            (ActionType.PICKUP, tuple(k for k in pickup_keywords if k)),
        )

    def classify(self, action_type_raw: Optional[str]) -> ActionType:
        """
        Resolve raw action text.

        Args:
            action_type_raw: Free-text action type from the sheet

        Returns:
            DROP, PICKUP, or OTHER when no keyword matches
        """
        text = clean_cell(action_type_raw)
        if not text:
            return ActionType.OTHER

        for action_type, keywords in self.mapping:
            if any(keyword in text for keyword in keywords):
                return action_type

        return ActionType.OTHER

    @classmethod
    def from_settings(cls) -> "ActionTypeClassifier":
        """Build classifier from configured keyword lists."""
        return cls(
            drop_keywords=settings.drop_action_keywords,
            pickup_keywords=settings.pickup_action_keywords,
        )


# Singleton instance
_classifier: Optional[ActionTypeClassifier] = None


def get_action_classifier() -> ActionTypeClassifier:
    """Get the singleton classifier built from settings."""
    global _classifier
    if _classifier is None:
        _classifier = ActionTypeClassifier.from_settings()
        logger.debug(
            "action_classifier_initialized",
            drop_keywords=settings.drop_action_keywords,
            pickup_keywords=settings.pickup_action_keywords,
        )
    return _classifier
