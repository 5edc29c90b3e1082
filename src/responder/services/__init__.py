"""Services module for the facility responder."""

from .lifecycle_manager import LifecycleManager
from .report_builder import FailurePolicy, ReportBuilder
from .request_validator import validate_parameters, validation_errors
from .response_engine import ResponseEngine
from .response_handlers import OperationRunner, ResponseHandler

__all__ = [
    "FailurePolicy",
    "LifecycleManager",
    "OperationRunner",
    "ReportBuilder",
    "ResponseEngine",
    "ResponseHandler",
    "validate_parameters",
    "validation_errors",
]
