from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from database import get_db
from models import EventRecord
from schemas import EventIn, EventOut

router = APIRouter(prefix="/api/events", tags=["Events"])


@router.get("", response_model=List[EventOut])
def events_list(db: Session = Depends(get_db)):
    return db.query(EventRecord).order_by(EventRecord.date.desc(), EventRecord.created_at.desc()).all()


@router.post("", response_model=EventOut, status_code=201)
def events_create(payload: EventIn, db: Session = Depends(get_db)):
    row = EventRecord(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.delete("", status_code=204)
def events_delete(id: Optional[str] = None, db: Session = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="id required")
    deleted = db.query(EventRecord).filter(EventRecord.id == id).delete()
    db.commit()
    if not deleted:
        raise HTTPException(status_code=404, detail="Event not found")
    return Response(status_code=204)
