from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.api.deps import get_current_profile
from cargo_certs.database import get_db
from cargo_certs.schemas import CertificateCreate, CertificateRead, CertificateUpdate
from cargo_certs.services import certificates as certificate_service
from cargo_certs.services.audit import audit_event, audit_request_context

router = APIRouter(prefix="/certificates", tags=["certificates"])


@router.get("", response_model=List[CertificateRead])
def list_certificates(
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    return certificate_service.list_certificates(db, current_profile)


@router.get("/{certificate_id}", response_model=CertificateRead)
def get_certificate(
    certificate_id: str,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    return certificate_service.get_certificate(db, current_profile, certificate_id)


@router.post("", response_model=CertificateRead, status_code=status.HTTP_201_CREATED)
def create_certificate(
    payload: CertificateCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    certificate = certificate_service.create_certificate(db, current_profile, payload.model_dump())
    audit_event(
        "certificate.created",
        current_profile.id,
        {
            "certificate_id": certificate.id,
            "certificate_number": certificate.certificate_number,
            "contract_id": certificate.contract_id,
            "value_euro": certificate.value_euro,
        },
        db=db,
        **audit_request_context(request),
    )
    return certificate


@router.patch("/{certificate_id}", response_model=CertificateRead)
def update_certificate(
    certificate_id: str,
    payload: CertificateUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    changes = payload.model_dump(exclude_unset=True)
    certificate = certificate_service.update_certificate(
        db, current_profile, certificate_id, changes
    )
    audit_event(
        "certificate.updated",
        current_profile.id,
        {"certificate_id": certificate.id, "fields": sorted(changes)},
        db=db,
        **audit_request_context(request),
    )
    return certificate


@router.delete("/{certificate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_certificate(
    certificate_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    certificate_service.delete_certificate(db, current_profile, certificate_id)
    audit_event(
        "certificate.deleted",
        current_profile.id,
        {"certificate_id": certificate_id},
        db=db,
        **audit_request_context(request),
    )
