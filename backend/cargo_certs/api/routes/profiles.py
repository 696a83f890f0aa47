from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.api.deps import get_current_profile
from cargo_certs.database import get_db
from cargo_certs.schemas import BrokerRead, ProfileAdminUpdate, ProfileRead, ProfileSelfUpdate
from cargo_certs.services import profiles as profile_service
from cargo_certs.services.audit import audit_event, audit_request_context

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileRead)
def read_own_profile(current_profile: models.Profile = Depends(get_current_profile)):
    return current_profile


@router.patch("/me", response_model=ProfileRead)
def update_own_profile(
    payload: ProfileSelfUpdate,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    return profile_service.update_own_profile(db, current_profile, payload.full_name)


@router.get("", response_model=List[ProfileRead])
def list_profiles(
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    return profile_service.list_profiles(db, current_profile)


@router.get("/brokers", response_model=List[BrokerRead])
def list_brokers(
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    return profile_service.list_brokers(db, current_profile)


@router.patch("/{profile_id}", response_model=ProfileRead)
def update_profile(
    profile_id: str,
    payload: ProfileAdminUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    changes = payload.model_dump(exclude_unset=True)
    profile = profile_service.update_profile_role(db, current_profile, profile_id, changes)
    audit_event(
        "profile.updated",
        current_profile.id,
        {"profile_id": profile.id, **changes},
        db=db,
        **audit_request_context(request),
    )
    return profile
