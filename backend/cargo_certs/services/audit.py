import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger("cargo_certs.audit")


def audit_event(
    action: str,
    profile_id: Optional[str],
    payload: Dict[str, Any],
    *,
    db: Session | None = None,
    request_id: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
) -> Optional[int]:
    """
    Persist audit event to database; if the DB write fails, log it instead.

    Never raises. Returns the created audit log id when available.
    """
    event = {
        "action": action,
        "profile_id": profile_id,
        "payload": payload,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    created_session = False
    session: Session | None = db
    try:
        from cargo_certs import models

        if session is None:
            from cargo_certs.database import SessionLocal

            session = SessionLocal()
            created_session = True

        log = models.AuditLog(
            action=action,
            profile_id=profile_id,
            payload_json=json.dumps(payload or {}, default=str),
            request_id=request_id,
            ip=ip,
            user_agent=(user_agent[:256] if user_agent else None),
        )
        session.add(log)
        session.commit()
        return log.id
    except SQLAlchemyError:
        if session is not None:
            session.rollback()
        logger.warning("audit_write_failed", extra={"event": event}, exc_info=True)
        return None
    finally:
        if created_session and session is not None:
            session.close()


def audit_request_context(request) -> Dict[str, Optional[str]]:
    """request_id / ip / user_agent kwargs for `audit_event` from a Starlette request."""
    return {
        "request_id": request.headers.get("x-request-id"),
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }
