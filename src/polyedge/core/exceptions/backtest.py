"""
Custom exception hierarchy for the strategy evaluation core.

The numeric calculators report bad inputs through reason strings and neutral
outputs; these exceptions are raised only at boundaries (config files,
signal files, schema decoding) and for caller errors.
"""


class BacktestException(Exception):
    """Base exception for all backtesting-related errors."""

    pass


class ValidationError(BacktestException):
    """Raised when input validation fails."""

    pass


class DataError(BacktestException):
    """Raised when signal data access or decoding fails."""

    pass


class CalculationError(BacktestException):
    """Raised when mathematical calculations fail."""

    pass


class ConfigurationError(BacktestException):
    """Raised when configuration is invalid."""

    pass


class InvalidThresholdError(ValidationError):
    """Raised when a strategy threshold or multiplier is out of range."""

    def __init__(self, field: str, value: object, requirement: str = "a finite number"):
        self.field = field
        self.value = value
        self.requirement = requirement
        super().__init__(f"Invalid {field}: {value!r} (must be {requirement})")


class MissingColumnsError(DataError):
    """Raised when a signal file lacks required columns."""

    def __init__(self, source: str, missing: list[str]):
        self.source = source
        self.missing = missing
        super().__init__(f"Missing required columns in {source}: {', '.join(missing)}")
