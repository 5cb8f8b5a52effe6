import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from database import get_db
from models import ParameterReading, READING_FIELDS
from schemas import BatchResult, ReadingIn, ReadingOut

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/params", tags=["Parameters"])


def list_readings(db: Session) -> List[ParameterReading]:
    return db.query(ParameterReading).order_by(ParameterReading.date.desc(), ParameterReading.created_at.desc()).all()


def upsert_by_date(db: Session, readings: List[ReadingIn]) -> Dict[str, int]:
    # last one wins when a batch repeats a date
    latest: Dict[str, ReadingIn] = {}
    for r in readings:
        latest[r.date] = r

    inserted, updated = 0, 0
    for day, r in latest.items():
        row = db.query(ParameterReading).filter(ParameterReading.date == day).order_by(ParameterReading.created_at.asc()).first()
        if row is None:
            db.add(ParameterReading(**r.model_dump()))
            inserted += 1
            continue
        for f in READING_FIELDS:
            setattr(row, f, getattr(r, f))
        updated += 1
    db.commit()
    logger.info("Upserted readings by date: %d inserted, %d updated", inserted, updated)
    return {"inserted": inserted, "updated": updated}


@router.get("", response_model=List[ReadingOut])
def params_list(db: Session = Depends(get_db)):
    return list_readings(db)


@router.post("", response_model=ReadingOut, status_code=201)
def params_create(payload: ReadingIn, db: Session = Depends(get_db)):
    row = ParameterReading(**payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.post("/batch", response_model=BatchResult)
def params_batch(payload: List[ReadingIn], db: Session = Depends(get_db)):
    return upsert_by_date(db, payload)


@router.delete("", status_code=204)
def params_delete(id: Optional[str] = None, db: Session = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="id required")
    deleted = db.query(ParameterReading).filter(ParameterReading.id == id).delete()
    db.commit()
    if not deleted:
        raise HTTPException(status_code=404, detail="Reading not found")
    return Response(status_code=204)
