"""
Error taxonomy shared by the record store, the core services and the web layer.
"""

from typing import List, Optional


class PromoTrackError(Exception):
    """Base class for all application errors."""
    pass


class ValidationError(PromoTrackError):
    """Raised when caller input is malformed (non-positive units, missing field)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(PromoTrackError):
    """Raised when a required record does not exist."""
    pass


class DuplicateAssignmentError(PromoTrackError):
    """Raised when an account already has a current assignment and replacement was not requested."""

    def __init__(self, account_id: str, existing_assignment_id: str):
        super().__init__(
            f"Account {account_id} already has a current assignment "
            f"({existing_assignment_id}); use the edit path to change it"
        )
        self.account_id = account_id
        self.existing_assignment_id = existing_assignment_id


class StoreError(PromoTrackError):
    """Raised when a record store call fails or returns a store-side error."""
    pass


class RecordNotFoundError(NotFoundError):
    """Raised by single-record selects when zero rows match."""

    def __init__(self, collection: str, filters: Optional[dict] = None):
        super().__init__(f"No {collection} record matches {filters or {}}")
        self.collection = collection
        self.filters = filters or {}


class CollectionUnavailableError(StoreError):
    """Raised when the store reports that a collection does not exist."""

    def __init__(self, collection: str):
        super().__init__(f"Collection '{collection}' is not available in the record store")
        self.collection = collection


class DispatchError(PromoTrackError):
    """Raised when the email API did not accept a message."""
    pass


class RolloverStateError(PromoTrackError):
    """Raised when a rollover phase is invoked out of order."""
    pass


class PartialRolloverError(PromoTrackError):
    """
    Raised when a rollover execute step fails after earlier steps committed.

    State may be inconsistent; no compensation is attempted.
    """

    def __init__(self, failed_step: str, completed_steps: List[str], cause: Exception):
        super().__init__(
            f"Quarter rollover failed during '{failed_step}' after completing "
            f"{completed_steps or 'no steps'}: {cause}. Data may be partially reset; "
            f"inspect the archive and live tables before retrying."
        )
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.cause = cause
