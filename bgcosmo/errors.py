"""Exception hierarchy for bgcosmo."""


class CosmologyError(RuntimeError):
    """Base class for fatal errors raised while setting up a cosmology."""


class ConfigValidationError(CosmologyError):
    """Raised when a configuration parameter is missing or invalid."""


class NumericalSetupError(CosmologyError):
    """Raised when a one-time numerical construction (ODE solve, spline) fails."""
