from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from chatdesk.logging_config import get_logger
from chatdesk.models import Flow
from chatdesk.services.errors import NotFoundError, ValidationError

logger = get_logger("flow_service")


def _clean_triggers(triggers: Optional[List[str]]) -> List[str]:
    return [trigger.strip() for trigger in (triggers or []) if trigger and trigger.strip()]


def list_flows(db: Session) -> List[Flow]:
    return db.query(Flow).order_by(Flow.updated_at.desc()).all()


def get_active_flows(db: Session) -> List[Flow]:
    """Active flows in match order: highest priority first, then most recently updated."""
    return (
        db.query(Flow)
        .filter(Flow.is_active.is_(True))
        .order_by(Flow.priority.desc(), Flow.updated_at.desc())
        .all()
    )


def get_flow(db: Session, flow_id: str) -> Flow:
    flow = db.query(Flow).filter(Flow.id == flow_id).first()
    if not flow:
        raise NotFoundError(f"Flow '{flow_id}' not found")
    return flow


def create_flow(
    db: Session,
    *,
    name: Optional[str],
    triggers: Optional[List[str]],
    response: Optional[str],
    is_active: bool = False,
    priority: int = 0,
    user_id: Optional[str] = None,
) -> Flow:
    triggers = _clean_triggers(triggers)
    if not name or not triggers or not response or not response.strip():
        raise ValidationError("Name, triggers (at least one), and response are required")

    now = datetime.now(timezone.utc)
    flow = Flow(
        name=name.strip(),
        triggers=triggers,
        response=response,
        is_active=bool(is_active),
        priority=priority or 0,
        user_id=user_id or "default",
        created_at=now,
        updated_at=now,
    )
    db.add(flow)
    db.flush()
    logger.info("Flow created", extra={"context": {"flow_id": flow.id, "triggers": triggers}})
    return flow


def update_flow(db: Session, flow_id: Optional[str], updates: dict) -> Flow:
    if not flow_id:
        raise ValidationError("flowId is required")
    flow = get_flow(db, flow_id)

    if updates.get("name") is not None:
        flow.name = updates["name"].strip()
    if updates.get("triggers") is not None:
        triggers = _clean_triggers(updates["triggers"])
        if not triggers:
            raise ValidationError("At least one trigger is required")
        flow.triggers = triggers
    if updates.get("response") is not None:
        if not updates["response"].strip():
            raise ValidationError("Response must not be empty")
        flow.response = updates["response"]
    if updates.get("is_active") is not None:
        flow.is_active = bool(updates["is_active"])
    if updates.get("priority") is not None:
        flow.priority = int(updates["priority"])

    flow.updated_at = datetime.now(timezone.utc)
    db.flush()
    logger.info("Flow updated", extra={"context": {"flow_id": flow.id}})
    return flow


def delete_flow(db: Session, flow_id: Optional[str]) -> None:
    if not flow_id:
        raise ValidationError("flowId is required")
    flow = get_flow(db, flow_id)
    db.delete(flow)
    db.flush()
    logger.info("Flow deleted", extra={"context": {"flow_id": flow_id}})


def serialize_flow(flow: Flow) -> dict:
    return {
        "id": flow.id,
        "name": flow.name,
        "triggers": list(flow.triggers or []),
        "response": flow.response,
        "isActive": bool(flow.is_active),
        "priority": flow.priority,
        "userId": flow.user_id,
        "createdAt": flow.created_at,
        "updatedAt": flow.updated_at,
    }
