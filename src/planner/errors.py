"""Exceptions raised by the billing service layer."""


class PlannerError(Exception):
    """Base exception for planner errors."""
    pass


class ConfigError(PlannerError):
    """Invalid tariff file or setting."""
    pass


class NotFoundError(PlannerError):
    """A tariff, customer or bill does not exist."""
    pass


class ValidationError(PlannerError):
    """Input rejected by a service operation."""
    pass


class ReadingRejected(ValidationError):
    """A meter reading failed validate_meter_reading."""

    def __init__(self, reason: str):
        super().__init__(f"Meter reading rejected: {reason}")
        self.reason = reason


class AlreadyPaidError(ValidationError):
    """Payment attempted on a bill that is already paid."""

    def __init__(self, bill_id: int):
        super().__init__(f"Bill {bill_id} is already paid")
        self.bill_id = bill_id
