from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from chatdesk.database import get_db
from chatdesk.schemas.keyword import KeywordCreate, KeywordUpdate
from chatdesk.services import keyword_service
from chatdesk.services.errors import NotFoundError, ValidationError

router = APIRouter(prefix="/keywords", tags=["keywords"])


@router.get("")
def list_keywords(db: Session = Depends(get_db)):
    keywords = [keyword_service.serialize_keyword(k) for k in keyword_service.list_keywords(db)]
    return {"success": True, "keywords": keywords}


@router.post("")
def create_keyword(request: KeywordCreate, db: Session = Depends(get_db)):
    try:
        keyword = keyword_service.create_keyword(
            db,
            keyword=request.keyword,
            response=request.response,
            is_active=request.isActive,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    db.commit()
    return {"success": True, "keyword": keyword_service.serialize_keyword(keyword)}


@router.put("/{keyword_id}")
def update_keyword(keyword_id: str, request: KeywordUpdate, db: Session = Depends(get_db)):
    updates = {"keyword": request.keyword, "response": request.response, "is_active": request.isActive}
    try:
        keyword = keyword_service.update_keyword(db, keyword_id, updates)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    db.commit()
    return {
        "success": True,
        "message": "Keyword updated successfully",
        "keyword": keyword_service.serialize_keyword(keyword),
    }


@router.delete("/{keyword_id}")
def delete_keyword(keyword_id: str, db: Session = Depends(get_db)):
    try:
        keyword_service.delete_keyword(db, keyword_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    db.commit()
    return {"success": True, "message": "Keyword deleted successfully"}
