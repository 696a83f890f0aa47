import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.api.deps import get_current_profile_optional
from cargo_certs.database import get_db
from cargo_certs.services import certificates as certificate_service
from cargo_certs.services.certificate_pdf import generate_certificate_pdf
from cargo_certs.services.certificate_rules import is_uuid_v4
from cargo_certs.services.errors import NotFoundError, UnauthorizedError

logger = logging.getLogger("cargo_certs.pdf")

router = APIRouter(prefix="/pdf", tags=["pdf"])


@router.get("/{certificate_id}", response_class=Response)
def download_certificate_pdf(
    certificate_id: str,
    db: Session = Depends(get_db),
    current_profile: Optional[models.Profile] = Depends(get_current_profile_optional),
):
    # The id format is checked before authentication.
    if not is_uuid_v4(certificate_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid certificate ID")
    if current_profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    # Ids are stored lower-case.
    certificate_id = certificate_id.lower()

    try:
        certificate = certificate_service.get_certificate(db, current_profile, certificate_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Certificate not found")
    except UnauthorizedError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")

    try:
        content = generate_certificate_pdf(certificate)
    except Exception:
        logger.exception(
            "pdf_generation_failed",
            extra={"certificate_id": certificate_id, "profile_id": current_profile.id},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to generate PDF"
        )

    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{certificate.certificate_number}.pdf"',
            "Content-Length": str(len(content)),
            "Cache-Control": "no-store, no-cache, must-revalidate",
        },
    )
