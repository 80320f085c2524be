from typing import Dict, Optional


class FinanceError(Exception):
    """Base class for every error raised by fintrack."""


class ValidationError(FinanceError, ValueError):
    """Input rejected before it reaches the store.

    ``errors`` maps each offending field to the message shown next to it.
    """

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message or "; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class NotFoundError(FinanceError, LookupError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class BackendError(FinanceError):
    """A store round-trip failed. The message is the backend's own."""
