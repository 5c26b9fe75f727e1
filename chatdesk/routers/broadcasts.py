from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from chatdesk.database import get_db
from chatdesk.schemas.broadcast import BroadcastCreate, BroadcastSendRequest, BroadcastUpdate
from chatdesk.services import broadcast_service
from chatdesk.services.errors import NotFoundError, ValidationError
from chatdesk.services.settings_service import get_whatsapp_config

router = APIRouter(prefix="/broadcasts", tags=["broadcasts"])


@router.get("")
def list_broadcasts(db: Session = Depends(get_db)):
    broadcasts = [broadcast_service.serialize_broadcast(b) for b in broadcast_service.list_broadcasts(db)]
    return {"success": True, "broadcasts": broadcasts}


@router.post("")
def create_broadcast(request: BroadcastCreate, db: Session = Depends(get_db)):
    try:
        broadcast = broadcast_service.create_broadcast(
            db,
            name=request.name,
            message=request.message,
            recipients=[recipient.model_dump() for recipient in request.recipients],
            scheduled_for=request.scheduledFor,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    db.commit()
    return {"success": True, "broadcast": broadcast_service.serialize_broadcast(broadcast)}


@router.put("")
def update_broadcast(request: BroadcastUpdate, db: Session = Depends(get_db)):
    updates = {
        "name": request.name,
        "message": request.message,
        "recipients": [r.model_dump() for r in request.recipients] if request.recipients else None,
        "status": request.status,
        "scheduled_for": request.scheduledFor,
    }
    try:
        broadcast = broadcast_service.update_broadcast(db, request.id, updates)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    db.commit()
    return {"success": True, "broadcast": broadcast_service.serialize_broadcast(broadcast)}


@router.delete("")
def delete_broadcast(id: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        broadcast_service.delete_broadcast(db, id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    db.commit()
    return {"success": True, "message": "Broadcast deleted successfully"}


@router.post("/send")
def send_broadcast(request: BroadcastSendRequest, db: Session = Depends(get_db)):
    recipients = [r.model_dump() for r in request.recipients] if request.recipients else None
    try:
        results = broadcast_service.send_broadcast(db, get_whatsapp_config(db), request.broadcastId, recipients)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    db.commit()
    return {
        "success": True,
        "message": f"Broadcast sent to {results['sent']} out of {results['total']} recipients",
        "results": results,
    }
