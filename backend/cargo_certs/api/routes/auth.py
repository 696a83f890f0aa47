from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.api.deps import get_current_profile
from cargo_certs.core.security import create_access_token
from cargo_certs.database import get_db
from cargo_certs.schemas import ProfileRead, SignupRequest, Token
from cargo_certs.services import profiles as profile_service
from cargo_certs.services.audit import audit_event, audit_request_context

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=Token)
def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    ctx = audit_request_context(request)
    try:
        profile = profile_service.authenticate(db, form_data.username, form_data.password)
    except SQLAlchemyError:
        audit_event("auth.login_db_error", None, {"email": form_data.username}, db=db, **ctx)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable. Please try again shortly.",
        )
    if not profile:
        audit_event("auth.login_failed", None, {"email": form_data.username}, db=db, **ctx)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password"
        )

    access_token = create_access_token(subject=profile.email)
    audit_event("auth.login_success", profile.id, {"email": profile.email}, db=db, **ctx)
    return Token(access_token=access_token)


@router.get("/me", response_model=ProfileRead)
def read_current_profile(current_profile: models.Profile = Depends(get_current_profile)):
    return current_profile


@router.post("/signup", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
def signup(request: Request, payload: SignupRequest, db: Session = Depends(get_db)):
    # Public signup never assigns a role or broker code; an admin does that later.
    profile = profile_service.register_profile(
        db, email=payload.email, password=payload.password, full_name=payload.full_name
    )
    audit_event(
        "auth.signup",
        profile.id,
        {"email": profile.email, "role": profile.role.value},
        db=db,
        **audit_request_context(request),
    )
    return profile
