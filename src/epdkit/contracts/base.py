"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
"""

from epdkit.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Enforce a pipeline contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants. No recovery, no fallback.

    Parameters
    ----------
    condition : bool
        The invariant that must be true. If False, ContractViolation is raised.

    message : str
        Error message explaining the contract violation.

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require(len(taxa) == counts.shape[1], "Record contract: taxon axis mismatch")
    """
    if not condition:
        raise ContractViolation(message)
