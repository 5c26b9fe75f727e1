from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from chatdesk.database import get_db
from chatdesk.schemas.flow import FlowCreate, FlowUpdate
from chatdesk.services import flow_service
from chatdesk.services.errors import NotFoundError, ValidationError

router = APIRouter(prefix="/flows", tags=["flows"])


@router.get("")
def list_flows(db: Session = Depends(get_db)):
    flows = [flow_service.serialize_flow(flow) for flow in flow_service.list_flows(db)]
    return {"success": True, "flows": flows}


@router.post("")
def create_flow(request: FlowCreate, db: Session = Depends(get_db)):
    try:
        flow = flow_service.create_flow(
            db,
            name=request.name,
            triggers=request.triggers,
            response=request.response,
            is_active=request.isActive,
            priority=request.priority,
            user_id=request.userId,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    db.commit()
    return {"success": True, "flow": flow_service.serialize_flow(flow)}


@router.put("")
def update_flow(request: FlowUpdate, db: Session = Depends(get_db)):
    updates = {
        "name": request.name,
        "triggers": request.triggers,
        "response": request.response,
        "is_active": request.isActive,
        "priority": request.priority,
    }
    try:
        flow = flow_service.update_flow(db, request.flowId, updates)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    db.commit()
    return {"success": True, "message": "Flow updated successfully", "flow": flow_service.serialize_flow(flow)}


@router.delete("")
def delete_flow(flowId: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        flow_service.delete_flow(db, flowId)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    db.commit()
    return {"success": True, "message": "Flow deleted successfully"}
