"""Physical evaluation request and pairing-code endpoints."""

from __future__ import annotations

from typing import NoReturn, TypeVar

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from evalcore.api.dependencies import get_athlete_caller, get_caller, get_guide_caller
from evalcore.db.session import get_db
from evalcore.evaluations.errors import Err, ErrorCode, Result
from evalcore.evaluations.otp import OTPAuthority
from evalcore.evaluations.request_service import EvaluationRequestService
from evalcore.evaluations.schemas import CallerProfile, EvaluationRequestView, OtpVerification, ScheduleInput

T = TypeVar("T")

router = APIRouter(prefix="/evaluations", tags=["evaluations"])

HTTP_STATUS_BY_CODE = {
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.STATUS_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.OTP_INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_MANDATORY_BATTERY: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class CreateEvaluationRequestBody(BaseModel):
    guide_id: str
    message: str | None = Field(default=None, max_length=1000)


class RejectResponse(BaseModel):
    request_id: str
    status: str = "REJECTED"


class VerifyOtpBody(BaseModel):
    code: str


def raise_for_error(err: Err) -> NoReturn:
    detail = {"code": err.code.value, "message": err.message}
    if err.field_errors:
        detail["field_errors"] = err.field_errors
    if err.trace_id:
        detail["trace_id"] = err.trace_id
    raise HTTPException(status_code=HTTP_STATUS_BY_CODE[err.code], detail=detail)


def _unwrap(result: Result[T]) -> T:
    if isinstance(result, Err):
        raise_for_error(result)
    return result.value


@router.post("/requests", response_model=EvaluationRequestView, status_code=status.HTTP_201_CREATED)
def create_request(
    body: CreateEvaluationRequestBody,
    caller: CallerProfile = Depends(get_athlete_caller),
    db: Session = Depends(get_db),
) -> EvaluationRequestView:
    return _unwrap(EvaluationRequestService(db).create_request(caller, body.guide_id, body.message))


@router.get("/requests", response_model=list[EvaluationRequestView])
def list_requests(
    caller: CallerProfile = Depends(get_guide_caller),
    db: Session = Depends(get_db),
) -> list[EvaluationRequestView]:
    """Guide inbox, newest first."""
    return _unwrap(EvaluationRequestService(db).list_guide_requests(caller))


@router.get("/requests/{request_id}", response_model=EvaluationRequestView)
def get_request(
    request_id: str,
    caller: CallerProfile = Depends(get_caller),
    db: Session = Depends(get_db),
) -> EvaluationRequestView:
    return _unwrap(EvaluationRequestService(db).get_request(request_id, caller))


@router.post("/requests/{request_id}/accept", response_model=EvaluationRequestView)
def accept_request(
    request_id: str,
    schedule: ScheduleInput,
    caller: CallerProfile = Depends(get_guide_caller),
    db: Session = Depends(get_db),
) -> EvaluationRequestView:
    return _unwrap(EvaluationRequestService(db).accept_request(request_id, caller, schedule))


@router.post("/requests/{request_id}/reject", response_model=RejectResponse)
def reject_request(
    request_id: str,
    caller: CallerProfile = Depends(get_guide_caller),
    db: Session = Depends(get_db),
) -> RejectResponse:
    return RejectResponse(request_id=_unwrap(EvaluationRequestService(db).reject_request(request_id, caller)))


@router.post("/otp/verify", response_model=OtpVerification)
def verify_otp(
    body: VerifyOtpBody,
    caller: CallerProfile = Depends(get_guide_caller),
    db: Session = Depends(get_db),
) -> OtpVerification:
    return _unwrap(OTPAuthority(db).verify(caller.id, body.code))
