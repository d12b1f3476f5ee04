"""Errors raised by the feedback composer core."""


class FeedbackError(Exception):
    """Base class for feedback composer errors."""


class EmptyInputError(FeedbackError):
    """Neither findings nor instructions were supplied, so there is nothing to compose."""


class UnknownActionError(FeedbackError, ValueError):
    """The quick action name is not one of the recognised actions."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unknown quick action: {action!r}")


class NoOpError(FeedbackError):
    """The action would leave the draft text unchanged; callers may skip it."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Quick action {action!r} would not change the draft")


class StaleRevisionError(FeedbackError):
    """An edit targeted a draft version that is no longer current."""

    def __init__(self, requested, current):
        self.requested = requested
        self.current = current
        super().__init__(f"Draft version {requested} is stale; current version is {current}")


class SupersededError(FeedbackError):
    """A composition was cancelled because a newer request for the same session arrived."""
