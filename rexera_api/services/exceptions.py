"""Domain errors raised by services and translated to API errors by the routes."""


class ServiceError(Exception):
    """Base class for service-level failures."""


class InvalidTransitionError(ServiceError):
    """A task status change not allowed by the state machine."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Invalid status transition from {current} to {target}")
        self.current = current
        self.target = target


class CounterpartyNotAllowedError(ServiceError):
    """Counterparty type is not compatible with the workflow type."""

    def __init__(self, counterparty_type: str, workflow_type: str):
        super().__init__(
            f"Counterparty type '{counterparty_type}' is not allowed "
            f"for workflow type '{workflow_type}'"
        )
        self.counterparty_type = counterparty_type
        self.workflow_type = workflow_type


class DuplicateRelationshipError(ServiceError):
    """The workflow/counterparty pair already exists."""


class CounterpartyInUseError(ServiceError):
    """A counterparty still linked to workflows cannot be deleted."""


class NotAuthorError(ServiceError):
    """Only the author of a note may change or delete it."""
