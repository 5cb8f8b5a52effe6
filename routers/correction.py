import logging
from datetime import date
from typing import List, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

import dosing
from database import get_db
from routers.doses import prepend_doses
from schemas import CorrectionIn, CorrectionOut, CorrectionSettings, DoseOut
from settings_store import load_correction_settings, save_correction_settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/correction", tags=["Correction"])


def resolve(db: Session, payload: CorrectionIn) -> Tuple[CorrectionSettings, List[dosing.ParameterCorrection]]:
    settings = load_correction_settings(db)
    changed = False
    if payload.volume_l is not None and payload.volume_l != settings.volume_l:
        settings.volume_l = payload.volume_l
        changed = True
    if payload.plan is not None and payload.plan != settings.plan:
        settings.plan = payload.plan
        changed = True
    if changed:
        save_correction_settings(db, settings)

    target = dosing.CorrectionTarget(
        volume_l=settings.volume_l,
        current_alk=payload.current_alk, target_alk=payload.target_alk,
        current_ca=payload.current_ca, target_ca=payload.target_ca,
        current_mg=payload.current_mg, target_mg=payload.target_mg,
    )
    plan = dosing.DosingPlan(**settings.plan.model_dump())
    return settings, dosing.compute_correction(target, plan)


@router.get("/settings", response_model=CorrectionSettings)
def correction_settings(db: Session = Depends(get_db)):
    return load_correction_settings(db)


@router.put("/settings", response_model=CorrectionSettings)
def correction_settings_save(payload: CorrectionSettings, db: Session = Depends(get_db)):
    return save_correction_settings(db, payload)


@router.post("", response_model=CorrectionOut)
def correction_compute(payload: CorrectionIn, db: Session = Depends(get_db)):
    settings, corrections = resolve(db, payload)
    return {"volume_l": settings.volume_l, "plan": settings.plan, **dosing.summarize(corrections)}


@router.post("/export")
def correction_export(payload: CorrectionIn, db: Session = Depends(get_db)):
    _, corrections = resolve(db, payload)
    csv_text = dosing.schedule_to_csv(corrections)
    filename = f"dosing_plan_{date.today().isoformat()}.csv"
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/commit", response_model=List[DoseOut], status_code=201)
def correction_commit(payload: CorrectionIn, db: Session = Depends(get_db)):
    _, corrections = resolve(db, payload)
    # Mg block on top, then Ca, then alk
    entries = [e for c in reversed(corrections) for e in dosing.dose_entries([c])]
    rows = prepend_doses(db, entries)
    logger.info("Committed %d scheduled doses to the log", len(rows))
    return rows
