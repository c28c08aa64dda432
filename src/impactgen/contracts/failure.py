"""Centralized failure taxonomy for impact generation.

Every error raised by the core is fatal. Nothing inside the core catches
these; they propagate to the run's top-level boundary, which terminates the
run with a non-zero status. A malformed input always aborts rather than
producing partially correct output.
"""


class ImpactGenError(RuntimeError):
    """Root of all impactgen errors."""
    pass


class FormatError(ImpactGenError):
    """Raised when an input file does not have the expected structure.

    Covers axes with gaps or too few samples, missing variables, unexpected
    dimensions and unknown time units. Messages name the offending file and
    variable.
    """
    pass


class AxisNotFoundError(FormatError):
    """Raised when no latitude or longitude axis can be resolved."""
    pass


class IncompatibleGridError(ImpactGenError):
    """Raised when rasters disagree in resolution beyond tolerance."""
    pass


class UnrelatedForcingError(ImpactGenError):
    """Raised when combining forcings that do not share one index mapping.

    This signals a programming or configuration defect: all forcings of one
    run must originate from the same canonical template.
    """
    pass


class TimeAlreadySetError(ImpactGenError):
    """Raised when a forcing is inserted twice for the same time key."""
    pass


class IncompatibleReferenceTimeError(ImpactGenError):
    """Raised when merging series whose time accuracies differ."""
    pass


class ContractViolation(ImpactGenError):
    """Raised when a stage does not produce the invariants it promised.

    Key distinction:
    - ValueError: User/config error (handled by Pydantic)
    - FormatError: malformed input file
    - ContractViolation: pipeline bug (programmer error)
    """
    pass
