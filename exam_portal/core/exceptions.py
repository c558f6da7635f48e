"""Domain exceptions shared by services and mapped to HTTP errors in main."""


class PortalError(Exception):
    """Base class for portal domain errors"""

    code = "PORTAL_ERROR"


class GenerationExhausted(PortalError):
    """Bounded retries ran out before a unique code could be produced."""

    code = "GENERATION_EXHAUSTED"

    def __init__(self, kind: str, attempts: int, produced: int = 0, requested: int = 1):
        self.kind = kind
        self.attempts = attempts
        self.produced = produced
        self.requested = requested
        super().__init__(
            f"Failed to generate unique {kind} after {attempts} attempts "
            f"({produced}/{requested} produced)"
        )


class ReferenceNotFound(PortalError):
    """The (lga_code, school_code) pair is not in the school reference dataset."""

    code = "SCHOOL_REFERENCE_NOT_FOUND"

    def __init__(self, lga_code: str, school_code: str):
        self.lga_code = lga_code
        self.school_code = school_code
        super().__init__(
            f"No school reference for LGA code {lga_code!r} and school code {school_code!r}"
        )


class InvalidCount(PortalError, ValueError):
    """Requested batch size is outside the accepted range."""

    code = "INVALID_COUNT"

    def __init__(self, count: int, maximum: int):
        self.count = count
        self.maximum = maximum
        super().__init__(f"Please specify a count between 1 and {maximum} (got {count})")


class RegistrationClosed(PortalError):
    code = "REGISTRATION_CLOSED"


class SequenceExhausted(PortalError):
    """A school has used every sequence the fixed-width student number can hold."""

    code = "SEQUENCE_EXHAUSTED"

    def __init__(self, prefix: str, sequence: int, maximum: int):
        self.prefix = prefix
        self.sequence = sequence
        self.maximum = maximum
        super().__init__(
            f"Student number sequence {sequence} for prefix {prefix} exceeds the maximum of {maximum}"
        )
