"""Domain exceptions raised by the inventory services."""


class MailstockError(Exception):
    """Base class for inventory errors."""


class InvalidWeekError(MailstockError, ValueError):
    """A week identifier or (year, week) pair does not name an ISO week."""

    def __init__(self, value: object, reason: str = "not a valid ISO week"):
        self.value = value
        self.reason = reason
        super().__init__(f"{value!r}: {reason}")


class UnknownCategoryError(MailstockError, ValueError):
    """A category label is not in the alias table."""

    def __init__(self, label: object):
        self.label = label
        super().__init__(f"Unknown category: {label!r}")


class InvalidTransitionError(MailstockError):
    """An item status change would break the lifecycle rules."""

    def __init__(self, identity: str, current: str, target: str):
        self.identity = identity
        self.current = current
        self.target = target
        super().__init__(f"Item {identity}: cannot move from {current} to {target}")
