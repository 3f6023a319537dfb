"""Error taxonomy for infotables.

All errors derive from ``ValueError`` so code written against plain
``ValueError`` checks keeps working.
"""


class InfoTablesError(ValueError):
    """Base class for all infotables errors."""


class InsufficientDataError(InfoTablesError):
    """A variable has no usable (non-missing) values."""


class DegenerateOutcomeError(InfoTablesError):
    """The outcome has a single class, globally, within validation or within a treatment arm."""


class InsufficientGroupError(InfoTablesError):
    """Uplift statistics cannot be computed because a treatment arm is empty."""


class SchemaMismatchError(InfoTablesError):
    """Columns are missing or have incompatible types across datasets."""


# Raised while processing a single variable; recorded, never abort the run.
VARIABLE_ERRORS = (InsufficientDataError, InsufficientGroupError, DegenerateOutcomeError)

__all__ = [
    "InfoTablesError",
    "InsufficientDataError",
    "DegenerateOutcomeError",
    "InsufficientGroupError",
    "SchemaMismatchError",
    "VARIABLE_ERRORS",
]
