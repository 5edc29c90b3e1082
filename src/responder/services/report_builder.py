"""
Execution Report Builder

Aggregates ordered sub-operation outcomes into the single execution report
and derives the overall result code under the configured failure policy.
"""

import time
from enum import Enum

from src.responder.models.schemas import (
    ExecutionReport,
    OperationStatus,
    ResponseCode,
    ResponseRequest,
    SubOperationOutcome,
    SystemMode,
)


class FailurePolicy(Enum):
    """Which failing sub-operation determines the overall result."""

    LAST = "last"  # Most recent failure wins
    FIRST = "first"  # Earliest failure wins

    @classmethod
    def from_name(cls, name: str) -> "FailurePolicy":
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError(f"Unknown failure policy: {name!r}") from None


def derive_overall_result(
    outcomes: list[SubOperationOutcome], policy: FailurePolicy = FailurePolicy.LAST
) -> int:
    """Return 0 when nothing failed, else the code of the selected failure."""
    failures = [outcome for outcome in outcomes if outcome.failed]
    if not failures:
        return ResponseCode.SUCCESS
    chosen = failures[-1] if policy is FailurePolicy.LAST else failures[0]
    return chosen.code


class ReportBuilder:
    """Fills one ExecutionReport over the course of an execution."""

    def __init__(self, policy: FailurePolicy = FailurePolicy.LAST):
        self.policy = policy

    def begin(self, request: ResponseRequest, mode: SystemMode) -> ExecutionReport:
        """Create the zeroed report for a new execution."""
        zones = request.target_zones
        return ExecutionReport(
            response_id=int(request.timestamp),
            response_type=int(request.type) if isinstance(request.type, int) else None,
            target_zones=zones if isinstance(zones, int) else 0,
            trigger_event=str(request.trigger_event),
            start_time=time.time(),
            system_mode=mode,
        )

    def complete(
        self,
        report: ExecutionReport,
        outcomes: list[SubOperationOutcome],
        summary: str,
    ) -> int:
        """Record handler outcomes on the report and return the overall result."""
        report.end_time = time.time()
        report.outcomes = list(outcomes)
        report.sub_operations = len(outcomes)
        report.success_count = sum(
            1 for outcome in outcomes if outcome.status is OperationStatus.SUCCESS
        )
        report.failed_count = sum(1 for outcome in outcomes if outcome.failed)
        report.warning_count = sum(
            1 for outcome in outcomes if outcome.status is OperationStatus.WARNING
        )
        report.overall_result = derive_overall_result(outcomes, self.policy)
        report.status_summary = summary

        failed = [outcome.name for outcome in outcomes if outcome.failed]
        if failed:
            report.error_details = f"Failed sub-operations: {', '.join(failed)}"

        return report.overall_result

    def reject(
        self, report: ExecutionReport, code: int, summary: str, details: str | None = None
    ) -> int:
        """Close a report for an execution that performed no actuation."""
        report.end_time = time.time()
        report.overall_result = code
        report.status_summary = summary
        report.error_details = details
        return code

    def note_overrun(self, report: ExecutionReport, elapsed: float, limit: float) -> None:
        """Flag an execution that ran past its soft deadline."""
        report.warning_count += 1
        message = f"Execution took {elapsed:.1f}s, exceeding the {limit:.0f}s limit"
        report.error_details = (
            f"{report.error_details}; {message}" if report.error_details else message
        )
