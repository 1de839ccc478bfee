"""solaryield error types for actionable error messages.

These exceptions provide structured information about what went wrong
and how to fix it, rather than generic error messages.

Example:
    try:
        result = solaryield.simulate_daily(FlatPanelCalculator(), store, site, weather)
    except solaryield.InvalidElementData as e:
        print(f"Element {e.element_id} field '{e.field}': expected {e.expected}, got {e.got}")
    except solaryield.ConfigurationError as e:
        print(f"Bad setting {e.parameter}: {e.reason}")
"""

from __future__ import annotations


class SolaryieldError(Exception):
    """Base class for all solaryield errors."""

    pass


class InvalidElementData(SolaryieldError):
    """Raised when collector element data is invalid or inconsistent.

    Attributes:
        message: Human-readable error description.
        element_id: Id of the offending element (optional).
        field: Name of the problematic field (e.g., "lx", "reflectance").
        expected: What was expected (optional).
        got: What was actually provided (optional).
    """

    def __init__(
        self,
        message: str,
        element_id: str | None = None,
        field: str | None = None,
        expected: str | None = None,
        got: str | None = None,
    ):
        self.element_id = element_id
        self.field = field
        self.expected = expected
        self.got = got
        super().__init__(message)


class MissingParentError(InvalidElementData):
    """Raised when an element's parent foundation cannot be resolved.

    The scheduler treats this as recoverable: the element is skipped for
    the step and a diagnostic is recorded on the job.

    Example:
        >>> store.get_parent(panel)  # parent "f9" was deleted
        MissingParentError: Element 'p1' references missing parent 'f9'
    """

    def __init__(self, element_id: str, parent_id: str | None):
        message = f"Element '{element_id}' references missing parent '{parent_id}'"
        super().__init__(message, element_id=element_id, field="parent_id", expected="existing foundation", got=str(parent_id))
        self.parent_id = parent_id


class WeatherDataError(SolaryieldError):
    """Raised when weather data is invalid.

    Attributes:
        field: The problematic weather field (e.g., "sunshine_hours").
        value: The invalid value.
        reason: Why the value is invalid.
    """

    def __init__(self, field: str, value: float | str, reason: str | None = None):
        self.field = field
        self.value = value
        self.reason = reason
        message = f"Invalid weather data for '{field}': {value}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ConfigurationError(SolaryieldError):
    """Raised when configuration is invalid or inconsistent.

    Attributes:
        parameter: The problematic parameter name.
        reason: Why the configuration is invalid.
    """

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        message = f"Invalid configuration for '{parameter}': {reason}"
        super().__init__(message)


class SchedulerStateError(SolaryieldError):
    """Raised when a control action is not allowed in the current state.

    Attributes:
        state: Name of the state the scheduler was in.
        action: The rejected action (e.g., "resume", "acquire").
    """

    def __init__(self, state: str, action: str, detail: str | None = None):
        self.state = state
        self.action = action
        message = f"Cannot {action} while simulation is {state}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
