"""API routes for integrated response execution."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from src.responder.core.exceptions import (
    ConfigurationError,
    InvalidParameterError,
    SafetyInterlockError,
)
from src.responder.models.schemas import (
    ALL_ZONES,
    ResponseRequest,
    ResponseType,
    SystemConfig,
)
from src.responder.services.request_validator import validation_errors
from src.responder.services.response_engine import ResponseEngine
from src.responder.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["responses"])


class ResponseRequestModel(BaseModel):
    """Request model for an integrated response.

    Ranges are checked by the engine so rejections carry its result codes.
    """

    type: ResponseType = Field(..., description="Response type (1-8)")
    severity: int = Field(..., description="Severity 1-10")
    target_zones: int = Field(0, description="32-bit zone mask, bit i = zone i")
    duration: int = Field(0, description="Effect duration in seconds")
    auth_level: int = Field(1, description="Declared clearance 1-5")
    trigger_event: str = Field("", description="Originating cause")
    retry_count: int = Field(0, description="Extra attempts per sub-operation")
    timeout_seconds: int = Field(0, description="Soft execution deadline, 0 to disable")

    def to_request(self) -> ResponseRequest:
        return ResponseRequest(
            type=self.type,
            severity=self.severity,
            target_zones=self.target_zones,
            duration=self.duration,
            auth_level=self.auth_level,
            trigger_event=self.trigger_event,
            retry_count=self.retry_count,
            timeout_seconds=self.timeout_seconds,
        )


class EmergencyRequest(BaseModel):
    """Request model for the emergency override."""

    level: int = Field(..., ge=1, le=10, description="Emergency level 1-10")


class SystemConfigModel(BaseModel):
    """Request model for response policy updates."""

    max_response_time: int = Field(..., gt=0)
    max_retry_attempts: int = Field(..., ge=0)
    enable_emergency_override: bool
    enable_auto_recovery: bool
    health_check_interval: int = Field(..., gt=0)


class ExecutionResponse(BaseModel):
    """Response model for an execution."""

    result: int
    report: dict[str, Any] | None


class ValidationResponse(BaseModel):
    """Response model for request validation."""

    valid: bool
    errors: list[str]


class StatusResponse(BaseModel):
    """Response model for engine status."""

    system_mode: str
    ready: bool
    engine: dict[str, Any]


def get_engine(request: Request) -> ResponseEngine:
    """Get response engine instance from app state."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Response engine not available")
    return engine


@router.post("/responses", response_model=ExecutionResponse)
async def execute_response(
    body: ResponseRequestModel, engine: ResponseEngine = Depends(get_engine)
):
    """Execute a response and return its code with the resulting report."""
    result = await engine.execute(body.to_request())
    report = engine.get_last_report()
    return ExecutionResponse(result=int(result), report=report.to_dict() if report else None)


@router.get("/responses/last")
async def get_last_report(engine: ResponseEngine = Depends(get_engine)):
    """Get the most recent execution report."""
    report = engine.get_last_report()
    if report is None:
        raise HTTPException(status_code=404, detail="No response has been executed")
    return report.to_dict()


@router.post("/responses/validate", response_model=ValidationResponse)
async def validate_response(body: ResponseRequestModel):
    """Check a request without executing it."""
    errors = validation_errors(body.to_request())
    return ValidationResponse(valid=not errors, errors=errors)


@router.post("/emergency", status_code=202)
async def trigger_emergency(body: EmergencyRequest, engine: ResponseEngine = Depends(get_engine)):
    """Trigger the emergency override; the lockdown runs in the background."""
    try:
        engine.emergency_sequence(body.level)
    except SafetyInterlockError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidParameterError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.warning(f"Emergency override accepted via API, level {body.level}")
    return {
        "accepted": True,
        "emergency_mode": engine.emergency_mode,
        "level": engine.current_level,
        "target_zones": ALL_ZONES,
    }


@router.get("/status", response_model=StatusResponse)
async def get_status(engine: ResponseEngine = Depends(get_engine)):
    """Get current system mode and readiness."""
    return StatusResponse(
        system_mode=engine.get_system_status().name,
        ready=await engine.subsystem_ready(),
        engine=engine.get_status(),
    )


@router.put("/config")
async def update_config(body: SystemConfigModel, engine: ResponseEngine = Depends(get_engine)):
    """Replace the response policy."""
    try:
        engine.update_config(SystemConfig(**body.model_dump()))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "config": engine.config.to_dict()}
