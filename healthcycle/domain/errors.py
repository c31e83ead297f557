"""Error taxonomy for the scheduling engine."""


class SchedulingError(Exception):
    """Base class for every error raised by healthcycle."""


class ScheduleValidationError(SchedulingError, ValueError):
    """Input rejected before any date arithmetic was attempted."""


class NotFoundError(SchedulingError, LookupError):
    """A referenced subject or service record does not exist."""


class ComputationGuardError(SchedulingError, RuntimeError):
    """A bounded computation failed to converge; indicates a logic defect."""
