"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all
invariants checked at stage boundaries (grid geometry, dimension layout,
forcing relations).
"""

from typing import Type

from impactgen.contracts.failure import ContractViolation, ImpactGenError


def require(condition: bool, message: str,
            error: Type[ImpactGenError] = ContractViolation) -> None:
    """Enforce an invariant.

    Fail-fast: no recovery, no fallback, no silence.

    Parameters
    ----------
    condition : bool
        The invariant that must be true.

    message : str
        Error message explaining the violation (for debugging).

    error : type, default ContractViolation
        Exception class raised when ``condition`` is False.

    Raises
    ------
    ImpactGenError
        The requested subclass, if condition is False.

    Examples
    --------
    >>> require(len(values) >= 2, "lat: too few samples", FormatError)
    >>> require(a.index is b.index, "Forcings are not related", UnrelatedForcingError)
    """
    if not condition:
        raise error(message)
