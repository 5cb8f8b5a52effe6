from typing import Dict, List, Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models import DoseRecord
from schemas import DoseIn, DoseOut

router = APIRouter(prefix="/api/doses", tags=["Dosing"])


def next_seq(db: Session) -> int:
    return (db.query(func.max(DoseRecord.seq)).scalar() or 0) + 1


def prepend_doses(db: Session, entries: Sequence[Dict[str, object]]) -> List[DoseRecord]:
    """Insert entries ahead of the existing log, keeping their given order."""
    base = next_seq(db)
    rows = []
    for offset, entry in enumerate(entries):
        row = DoseRecord(seq=base + len(entries) - 1 - offset, **entry)
        db.add(row)
        rows.append(row)
    db.commit()
    for r in rows:
        db.refresh(r)
    return rows


@router.get("", response_model=List[DoseOut])
def doses_list(db: Session = Depends(get_db)):
    return db.query(DoseRecord).order_by(DoseRecord.seq.desc()).all()


@router.post("", response_model=DoseOut, status_code=201)
def doses_create(payload: DoseIn, db: Session = Depends(get_db)):
    return prepend_doses(db, [payload.model_dump()])[0]


@router.delete("", status_code=204)
def doses_delete(id: Optional[str] = None, db: Session = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="id required")
    deleted = db.query(DoseRecord).filter(DoseRecord.id == id).delete()
    db.commit()
    if not deleted:
        raise HTTPException(status_code=404, detail="Dose not found")
    return Response(status_code=204)
