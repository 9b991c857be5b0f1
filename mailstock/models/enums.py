"""Enums for model fields."""

from enum import Enum


class Category(str, Enum):
    """Fixed set of inventory categories."""

    DECLARATIONS = "declarations"
    REGLEMENTS = "reglements"
    MAILS_SIMPLES = "mails_simples"

    @property
    def label(self) -> str:
        """Display label used in reports."""
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    Category.DECLARATIONS: "Déclarations",
    Category.REGLEMENTS: "Règlements",
    Category.MAILS_SIMPLES: "Mails simples",
}


class ItemStatus(str, Enum):
    """Lifecycle state of a tracked item."""

    ARRIVED = "arrived"
    READ = "read"
    TREATED = "treated"
    DELETED = "deleted"

    def can_transition_to(self, target: "ItemStatus") -> bool:
        """Check whether moving from this status to target is allowed."""
        return target == self or target in ALLOWED_TRANSITIONS[self]


# treated never goes back to arrived/read; deleted is terminal
ALLOWED_TRANSITIONS = {
    ItemStatus.ARRIVED: {ItemStatus.READ, ItemStatus.TREATED, ItemStatus.DELETED},
    ItemStatus.READ: {ItemStatus.ARRIVED, ItemStatus.TREATED, ItemStatus.DELETED},
    ItemStatus.TREATED: {ItemStatus.DELETED},
    ItemStatus.DELETED: set(),
}


class ActivityType(str, Enum):
    """Kinds of entries in the item activity trail."""

    ARRIVED = "arrived"
    READ = "read"
    UNREAD = "unread"
    RECLASSIFIED = "reclassified"
    TREATED = "treated"
    UNTREATED_FLAG = "untreated_flag"
    DELETED = "deleted"
    GAP = "gap"
