from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.api.deps import get_current_profile
from cargo_certs.database import get_db
from cargo_certs.schemas import ContractCreate, ContractRead, ContractUpdate
from cargo_certs.services import contracts as contract_service
from cargo_certs.services.audit import audit_event, audit_request_context

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.get("", response_model=List[ContractRead])
def list_contracts(
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    """Admins get every contract; brokers get the contracts they may certify."""
    return contract_service.list_contracts(db, current_profile)


@router.get("/{contract_id}", response_model=ContractRead)
def get_contract(
    contract_id: str,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    return contract_service.get_contract(db, current_profile, contract_id)


@router.post("", response_model=ContractRead, status_code=status.HTTP_201_CREATED)
def create_contract(
    payload: ContractCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    contract = contract_service.create_contract(db, current_profile, payload.model_dump())
    audit_event(
        "contract.created",
        current_profile.id,
        {"contract_id": contract.id, "contract_number": contract.contract_number},
        db=db,
        **audit_request_context(request),
    )
    return contract


@router.patch("/{contract_id}", response_model=ContractRead)
def update_contract(
    contract_id: str,
    payload: ContractUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    changes = payload.model_dump(exclude_unset=True)
    contract = contract_service.update_contract(db, current_profile, contract_id, changes)
    audit_event(
        "contract.updated",
        current_profile.id,
        {"contract_id": contract.id, "fields": sorted(changes)},
        db=db,
        **audit_request_context(request),
    )
    return contract


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract(
    contract_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_profile: models.Profile = Depends(get_current_profile),
):
    contract_service.delete_contract(db, current_profile, contract_id)
    audit_event(
        "contract.deleted",
        current_profile.id,
        {"contract_id": contract_id},
        db=db,
        **audit_request_context(request),
    )
