"""
Custom exception classes for the facility responder.

Execution outcomes travel as integer result codes in the execution report;
these exceptions cover the paths where an operation cannot proceed at all.
"""


class ResponderException(Exception):
    """Base exception for all responder custom exceptions."""

    pass


class ConfigurationError(ResponderException):
    """Exception raised for configuration errors."""

    pass


class HardwareError(ResponderException):
    """Exception raised for actuator hardware errors."""

    pass


class ActuatorError(HardwareError):
    """Exception raised when an actuator call cannot be completed."""

    def __init__(self, message: str, actuator: str | None = None):
        super().__init__(message)
        self.actuator = actuator


class InitializationError(ResponderException):
    """Exception raised when a subsystem startup stage fails.

    Attributes:
        stage: Name of the failing stage ("hardware", "network", "access_control")
        code: Stage-specific result code
    """

    def __init__(self, message: str, stage: str, code: int):
        super().__init__(message)
        self.stage = stage
        self.code = code


class InvalidParameterError(ResponderException):
    """Exception raised for out-of-range request or override parameters."""

    pass


class SafetyInterlockError(ResponderException):
    """Exception raised when a policy interlock prevents an operation."""

    pass
