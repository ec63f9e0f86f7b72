"""
Exception hierarchy for anthropometric z-score computation.

Every error is terminal: it signals caller misuse or a gap in the reference
data, never a transient condition.
"""


class AnthropometryError(ValueError):
    """Base class for all anthropometry errors."""


class InputValidationError(AnthropometryError):
    """A subject input failed a domain check."""


class InvalidGenderError(InputValidationError):
    pass


class InvalidAgeError(InputValidationError):
    pass


class InvalidHeightError(InputValidationError):
    pass


class InvalidIndicatorError(InputValidationError):
    pass


class InvalidMeasurementError(InputValidationError):
    pass


class ReferenceDataError(AnthropometryError):
    """The reference tables cannot supply a usable row."""


class RowNotFoundError(ReferenceDataError):
    pass


class EmptyRowError(ReferenceDataError):
    pass


class MissingColumnError(ReferenceDataError):
    pass


class CategorizationGapError(AnthropometryError):
    """A score fell between category bands and needs review."""
