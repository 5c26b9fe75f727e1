from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from chatdesk.database import get_db
from chatdesk.schemas.settings import SettingsUpdate, WhatsAppCheckRequest, WhatsAppConfigRequest
from chatdesk.services.settings_service import (
    get_settings_payload,
    get_whatsapp_config,
    save_settings,
    save_whatsapp_config,
)
from chatdesk.services.whatsapp_service import check_connection

router = APIRouter(tags=["settings"])


@router.get("/settings")
def get_settings(db: Session = Depends(get_db)):
    return {"success": True, "settings": get_settings_payload(db)}


@router.post("/settings")
def update_settings(request: SettingsUpdate, db: Session = Depends(get_db)):
    payload = save_settings(db, request.model_dump(exclude_none=True))
    db.commit()
    return {"success": True, "settings": payload}


@router.post("/settings/test-whatsapp")
def test_whatsapp(request: WhatsAppCheckRequest):
    """Check WhatsApp credentials by fetching the phone number profile."""
    if not request.accessToken or not request.phoneNumberId:
        raise HTTPException(status_code=400, detail="Access token and phone number ID are required")

    result = check_connection(request.accessToken, request.phoneNumberId)
    if not result.ok:
        raise HTTPException(
            status_code=result.status_code or 502,
            detail={"error": result.error, "details": result.details},
        )
    return {"success": True, "message": "WhatsApp API connection successful", "data": result.value}


@router.get("/config")
def get_config(db: Session = Depends(get_db)):
    config = get_whatsapp_config(db)
    return {"config": config.masked(), "hasConfig": config.is_complete}


@router.post("/config")
def update_config(request: WhatsAppConfigRequest, db: Session = Depends(get_db)):
    if not (request.accessToken and request.phoneNumberId and request.verifyToken and request.webhookUrl):
        raise HTTPException(status_code=400, detail="Missing required configuration fields")

    config = save_whatsapp_config(
        db,
        access_token=request.accessToken,
        phone_number_id=request.phoneNumberId,
        verify_token=request.verifyToken,
        webhook_url=request.webhookUrl,
    )
    db.commit()
    return {"message": "Configuration updated successfully", "config": config.masked()}
