# Error taxonomy; every front end catches BloodBankError at the action boundary


class BloodBankError(Exception):
    pass


class ValidationError(BloodBankError, ValueError):
    """Empty or unparseable required field."""


class RecordNotFound(ValidationError, LookupError):
    pass


class InsufficientUnits(BloodBankError):
    """A debit would take an inventory count below zero."""

    def __init__(self, blood_type, requested, available, message=None):
        self.blood_type = blood_type
        self.requested = requested
        self.available = available
        super().__init__(message or f"Insufficient units to remove ({available} {blood_type} available).")


class InsufficientInventory(InsufficientUnits):
    """Stock cannot cover a request being fulfilled."""

    def __init__(self, blood_type, requested, available):
        super().__init__(blood_type, requested, available,
                         f"Insufficient inventory ({available} units).")


class InvalidState(BloodBankError):
    pass


class NotPending(InvalidState):
    def __init__(self, request_id, status):
        self.request_id = request_id
        self.status = status
        super().__init__(f"Request {request_id} is not pending ({status}).")


class AlreadyFulfilled(InvalidState):
    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"Fulfilled request {request_id} cannot be cancelled.")


class StorageError(BloodBankError):
    """Load or save of a data file failed."""
