from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from chatdesk.logging_config import get_logger
from chatdesk.models import Keyword
from chatdesk.services.errors import NotFoundError, ValidationError

logger = get_logger("keyword_service")


def list_keywords(db: Session) -> List[Keyword]:
    return db.query(Keyword).order_by(Keyword.created_at.asc()).all()


def get_active_keywords(db: Session) -> List[Keyword]:
    return db.query(Keyword).filter(Keyword.is_active.is_(True)).order_by(Keyword.created_at.asc()).all()


def get_keyword(db: Session, keyword_id: str) -> Keyword:
    keyword = db.query(Keyword).filter(Keyword.id == keyword_id).first()
    if not keyword:
        raise NotFoundError("Keyword not found")
    return keyword


def create_keyword(
    db: Session,
    *,
    keyword: Optional[str],
    response: Optional[str],
    is_active: bool = True,
) -> Keyword:
    keyword = (keyword or "").strip().lower()
    response = (response or "").strip()
    if not keyword or not response:
        raise ValidationError("Keyword and response are required")

    now = datetime.now(timezone.utc)
    row = Keyword(keyword=keyword, response=response, is_active=bool(is_active), created_at=now, updated_at=now)
    db.add(row)
    db.flush()
    logger.info("Keyword created", extra={"context": {"keyword_id": row.id, "keyword": keyword}})
    return row


def update_keyword(db: Session, keyword_id: Optional[str], updates: dict) -> Keyword:
    """Apply non-empty fields; `is_active` is applied whenever it is not None."""
    if not keyword_id:
        raise ValidationError("Keyword ID is required")
    row = get_keyword(db, keyword_id)

    if updates.get("keyword"):
        row.keyword = updates["keyword"].strip().lower()
    if updates.get("response"):
        row.response = updates["response"].strip()
    if updates.get("is_active") is not None:
        row.is_active = bool(updates["is_active"])

    if not row.keyword or not row.response:
        raise ValidationError("Keyword and response must not be empty")

    row.updated_at = datetime.now(timezone.utc)
    db.flush()
    return row


def delete_keyword(db: Session, keyword_id: Optional[str]) -> None:
    if not keyword_id:
        raise ValidationError("Keyword ID is required")
    db.delete(get_keyword(db, keyword_id))
    db.flush()
    logger.info("Keyword deleted", extra={"context": {"keyword_id": keyword_id}})


def match_keyword(keywords: Iterable[Keyword], message_text: str) -> Optional[Keyword]:
    """First active keyword contained in the message (case-insensitive)."""
    lowered = (message_text or "").lower()
    if not lowered.strip():
        return None
    for row in keywords:
        if row.is_active and row.keyword and row.keyword.lower() in lowered:
            return row
    return None


def serialize_keyword(row: Keyword) -> dict:
    return {
        "id": row.id,
        "keyword": row.keyword,
        "response": row.response,
        "isActive": bool(row.is_active),
        "createdAt": row.created_at,
        "updatedAt": row.updated_at,
    }
