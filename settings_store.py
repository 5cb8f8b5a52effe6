"""Key/value settings persisted in ``app_settings`` as JSON text."""
import json
import logging
from typing import Any

from sqlalchemy.orm import Session

from models import AppSetting
from schemas import CorrectionSettings

logger = logging.getLogger(__name__)

VOLUME_KEY = "correction.volume_l"
PLAN_KEY = "correction.plan"


def get_setting(db: Session, key: str, default: Any = None) -> Any:
    row = db.get(AppSetting, key)
    if row is None or row.value is None:
        return default
    try:
        return json.loads(row.value)
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable setting %s", key)
        return default


def set_setting(db: Session, key: str, value: Any) -> None:
    payload = json.dumps(value)
    row = db.get(AppSetting, key)
    if row is None:
        db.add(AppSetting(key=key, value=payload))
    elif row.value != payload:
        row.value = payload


def load_correction_settings(db: Session) -> CorrectionSettings:
    defaults = CorrectionSettings()
    return CorrectionSettings(
        volume_l=get_setting(db, VOLUME_KEY, defaults.volume_l),
        plan=get_setting(db, PLAN_KEY, defaults.plan.model_dump()),
    )


def save_correction_settings(db: Session, settings: CorrectionSettings) -> CorrectionSettings:
    set_setting(db, VOLUME_KEY, settings.volume_l)
    set_setting(db, PLAN_KEY, settings.plan.model_dump())
    db.commit()
    return settings
