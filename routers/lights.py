import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models import LightChannel
from schemas import LightIn, LightOut, LightUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/lights", tags=["Lighting"])

# Stock channel mix for a new fixture (percent)
DEFAULT_CHANNELS = [
    ("UV", 20),
    ("Violet", 20),
    ("Royal", 50),
    ("Blue", 60),
    ("White", 10),
    ("Green", 5),
    ("Red", 5),
]


def list_channels(db: Session) -> List[LightChannel]:
    return db.query(LightChannel).order_by(LightChannel.position.asc()).all()


def _get_or_404(db: Session, id: Optional[str]) -> LightChannel:
    if not id:
        raise HTTPException(status_code=400, detail="id required")
    row = db.query(LightChannel).filter(LightChannel.id == id).first()
    if row is None:
        raise HTTPException(status_code=404, detail="Light channel not found")
    return row


@router.get("", response_model=List[LightOut])
def lights_list(db: Session = Depends(get_db)):
    return list_channels(db)


@router.post("", response_model=LightOut, status_code=201)
def lights_create(payload: LightIn, db: Session = Depends(get_db)):
    position = (db.query(func.max(LightChannel.position)).scalar() or 0) + 1
    row = LightChannel(position=position, **payload.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.put("", response_model=LightOut)
def lights_set_intensity(payload: LightUpdate, id: Optional[str] = None, db: Session = Depends(get_db)):
    row = _get_or_404(db, id)
    row.intensity = payload.intensity
    db.commit()
    db.refresh(row)
    return row


@router.post("/reset", response_model=List[LightOut])
def lights_reset(db: Session = Depends(get_db)):
    db.query(LightChannel).delete()
    for position, (name, intensity) in enumerate(DEFAULT_CHANNELS, start=1):
        db.add(LightChannel(position=position, name=name, intensity=intensity))
    db.commit()
    logger.info("Light channels reset to the %d stock channels", len(DEFAULT_CHANNELS))
    return list_channels(db)


@router.delete("", status_code=204)
def lights_delete(id: Optional[str] = None, db: Session = Depends(get_db)):
    row = _get_or_404(db, id)
    db.delete(row)
    db.commit()
    return Response(status_code=204)
