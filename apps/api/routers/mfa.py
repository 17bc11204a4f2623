"""TOTP factor management for the signed-in caller."""

from fastapi import APIRouter, Depends, Response, status

from apps.api.deps import current_session, get_container
from apps.api.schemas.auth import MFAEnrollBody, MFAEnrollResponse, MFAFactorResponse, MFAVerifyBody
from finops.domain.entities import MFAFactor
from finops.domain.session import SessionContext
from finops.infrastructure.bootstrap import Container

router = APIRouter(prefix="/mfa", tags=["mfa"])


def _factor_out(factor: MFAFactor) -> MFAFactorResponse:
    return MFAFactorResponse(id=factor.id, friendly_name=factor.friendly_name, status=factor.status.value)


@router.get("/factors", response_model=list[MFAFactorResponse])
def list_factors(
    session: SessionContext = Depends(current_session),
    container: Container = Depends(get_container),
) -> list[MFAFactorResponse]:
    return [_factor_out(f) for f in container.mfa.list_factors(session)]


@router.post("/factors", response_model=MFAEnrollResponse, status_code=status.HTTP_201_CREATED)
def enroll_factor(
    body: MFAEnrollBody,
    session: SessionContext = Depends(current_session),
    container: Container = Depends(get_container),
) -> MFAEnrollResponse:
    enrollment = container.mfa.enroll(session, body.friendly_name)
    return MFAEnrollResponse(
        factor_id=enrollment.factor_id,
        secret=enrollment.secret,
        provisioning_uri=enrollment.provisioning_uri,
    )


@router.post("/factors/{factor_id}/verify", response_model=MFAFactorResponse)
def verify_factor(
    factor_id: str,
    body: MFAVerifyBody,
    session: SessionContext = Depends(current_session),
    container: Container = Depends(get_container),
) -> MFAFactorResponse:
    return _factor_out(container.mfa.verify_enrollment(session, factor_id, body.code))


@router.delete("/factors/{factor_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def unenroll_factor(
    factor_id: str,
    session: SessionContext = Depends(current_session),
    container: Container = Depends(get_container),
) -> Response:
    container.mfa.unenroll(session, factor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
