"""Centralized failure types for the standardization pipeline.

Two families of errors exist. ``ContractViolation`` means a stage broke an
invariant it promised (a bug). ``EPDError`` subclasses mean the data itself
cannot be standardized as requested and a curator or caller has to act.
"""


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in pipeline logic, not bad user input or a
    problem with the source data.

    Key distinction:
    - ValueError: User/config error (handled by Pydantic)
    - ContractViolation: Pipeline bug (programmer error)
    - EPDError: Source data cannot satisfy the request
    """
    pass


class AlreadyNormalizedError(ContractViolation):
    """Percentages were requested for a record already in percentages."""

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(
            f"Entity {entity_id}: counts are already percentages, "
            "normalizing twice is not allowed"
        )


class EPDError(Exception):
    """Base class for data errors raised by standardization stages."""
    pass


class EmptyResultError(EPDError):
    """A filter removed every taxon of a record."""
    pass


class UnknownTaxonError(EPDError):
    """A taxon id has no entry in the taxonomy index."""

    def __init__(self, taxon_id, entity_id=None):
        self.taxon_id = taxon_id
        self.entity_id = entity_id
        where = f" (entity {entity_id})" if entity_id is not None else ""
        super().__init__(f"Taxon id {taxon_id} not found in taxonomy index{where}")


class MissingUncertaintyError(EPDError):
    """The chronology used for quality scoring has no per-sample uncertainty."""

    def __init__(self, entity_id: int, chron_id=None):
        self.entity_id = entity_id
        self.chron_id = chron_id
        super().__init__(
            f"Entity {entity_id}: chronology {chron_id} carries no age "
            "uncertainty, quality index cannot be computed"
        )
