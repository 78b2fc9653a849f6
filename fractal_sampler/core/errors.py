"""
Error taxonomy for fractal sampling.

All errors derive from ValueError so callers that already guard numeric
input with ``except ValueError`` keep working.
"""


class FractalSamplingError(ValueError):
    """Base class for every error raised by the sampling engine."""


class InvalidDomainError(FractalSamplingError):
    """Domain bounds are inverted/empty or a step size is not positive."""


class InvalidBudgetError(FractalSamplingError):
    """Iteration or point budget is not a positive integer."""


class UnsupportedDegreeError(InvalidBudgetError):
    """Multibrot degree below 1."""


class InvalidParameterError(FractalSamplingError):
    """A fractal parameter is missing, unknown or out of range."""


class UnknownFractalError(FractalSamplingError):
    """Fractal kind identifier does not name a known kind."""


class SequenceExhaustedError(FractalSamplingError):
    """A sample sequence was iterated after it had already been consumed."""


class ConfigError(FractalSamplingError):
    """Configuration file or environment override could not be used."""
