from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dosing import MAX_DOSES_PER_DAY, MAX_PLAN_DAYS
from input_utils import coerce_float, coerce_min_int, clamp_hour, clamp_percent, parse_iso_date
from models import READING_FIELDS


class ReadingIn(BaseModel):
    date: str
    temp: Optional[float] = None
    salinity: Optional[float] = None
    ph: Optional[float] = None
    alk: Optional[float] = None
    ca: Optional[float] = None
    mg: Optional[float] = None
    no3: Optional[float] = None
    po4: Optional[float] = None
    ammonia: Optional[float] = None
    nitrite: Optional[float] = None

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        parsed = parse_iso_date(v)
        if parsed is None:
            raise ValueError("date must be YYYY-MM-DD")
        return parsed

    @field_validator(*READING_FIELDS, mode="before")
    @classmethod
    def _numeric(cls, v):
        return coerce_float(v)


class ReadingOut(ReadingIn):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[str] = None


class RemoteReading(BaseModel):
    """Row shape accepted from a remote logbook.

    Numbers may arrive as strings (Postgres numeric columns serialise that way)
    and are coerced once here; anything that is present but not a number is a
    shape error rather than a silent zero.
    """

    id: str
    date: str
    temp: Optional[float] = None
    salinity: Optional[float] = None
    ph: Optional[float] = None
    alk: Optional[float] = None
    ca: Optional[float] = None
    mg: Optional[float] = None
    no3: Optional[float] = None
    po4: Optional[float] = None
    ammonia: Optional[float] = None
    nitrite: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        if v is None or str(v).strip() == "":
            raise ValueError("id is required")
        return str(v)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        parsed = parse_iso_date(v)
        if parsed is None:
            raise ValueError("date must be YYYY-MM-DD")
        return parsed

    @field_validator(*READING_FIELDS, mode="before")
    @classmethod
    def _numeric(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        fv = coerce_float(v)
        if fv is None:
            raise ValueError(f"not a number: {v!r}")
        return fv


class DoseIn(BaseModel):
    date: str
    product: Literal["All-For-Reef", "Alkalinity", "Calcium", "Magnesium", "Other"]
    amount: float
    unit: Literal["mL", "g", "drops"] = "mL"
    notes: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        parsed = parse_iso_date(v)
        if parsed is None:
            raise ValueError("date must be YYYY-MM-DD")
        return parsed

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        fv = coerce_float(v)
        return 0.0 if fv is None else fv

    @field_validator("notes", mode="before")
    @classmethod
    def _notes(cls, v):
        return (str(v).strip() or None) if v is not None else None


class DoseOut(DoseIn):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[str] = None


class EventIn(BaseModel):
    date: str
    title: str
    type: Literal["Added", "Removed", "Adjustment", "Measurement", "Maintenance", "Other"] = "Measurement"
    description: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        parsed = parse_iso_date(v)
        if parsed is None:
            raise ValueError("date must be YYYY-MM-DD")
        return parsed

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        text = str(v).strip() if v is not None else ""
        if not text:
            raise ValueError("title is required")
        return text

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v):
        return (str(v).strip() or None) if v is not None else None


class EventOut(EventIn):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[str] = None


class LightIn(BaseModel):
    name: str
    intensity: int = 0

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        text = str(v).strip() if v is not None else ""
        if not text:
            raise ValueError("name is required")
        return text

    @field_validator("intensity", mode="before")
    @classmethod
    def _intensity(cls, v):
        return clamp_percent(v)


class LightUpdate(BaseModel):
    intensity: int

    @field_validator("intensity", mode="before")
    @classmethod
    def _intensity(cls, v):
        return clamp_percent(v)


class LightOut(LightIn):
    model_config = ConfigDict(from_attributes=True)

    id: str
    position: int


class PlanIn(BaseModel):
    days: int = 3
    doses_per_day: int = 2
    start_hour: int = 8

    @field_validator("days", mode="before")
    @classmethod
    def _days(cls, v):
        return coerce_min_int(v, maximum=MAX_PLAN_DAYS)

    @field_validator("doses_per_day", mode="before")
    @classmethod
    def _doses_per_day(cls, v):
        return coerce_min_int(v, maximum=MAX_DOSES_PER_DAY)

    @field_validator("start_hour", mode="before")
    @classmethod
    def _hour(cls, v):
        return clamp_hour(v)


class CorrectionSettings(BaseModel):
    volume_l: float = 100.0
    plan: PlanIn = Field(default_factory=PlanIn)

    @field_validator("volume_l", mode="before")
    @classmethod
    def _volume(cls, v):
        fv = coerce_float(v)
        return 0.0 if fv is None else fv


# Form defaults used when a reading is blank or not a number
CORRECTION_DEFAULTS = {
    "current_alk": 8.0, "target_alk": 8.5,
    "current_ca": 420.0, "target_ca": 440.0,
    "current_mg": 1350.0, "target_mg": 1400.0,
}


class CorrectionIn(BaseModel):
    volume_l: Optional[float] = None
    plan: Optional[PlanIn] = None
    current_alk: float = CORRECTION_DEFAULTS["current_alk"]
    target_alk: float = CORRECTION_DEFAULTS["target_alk"]
    current_ca: float = CORRECTION_DEFAULTS["current_ca"]
    target_ca: float = CORRECTION_DEFAULTS["target_ca"]
    current_mg: float = CORRECTION_DEFAULTS["current_mg"]
    target_mg: float = CORRECTION_DEFAULTS["target_mg"]

    @field_validator("volume_l", mode="before")
    @classmethod
    def _volume(cls, v):
        if v is None:
            return None
        fv = coerce_float(v)
        return 0.0 if fv is None else fv

    @field_validator(*CORRECTION_DEFAULTS.keys(), mode="before")
    @classmethod
    def _reading(cls, v, info):
        fv = coerce_float(v)
        return CORRECTION_DEFAULTS[info.field_name] if fv is None else fv


class CorrectionParameterOut(BaseModel):
    parameter: str
    product: str
    channel: str
    unit: str
    requested_delta: float
    applied_delta: float
    clamped: bool
    total_ml: float
    per_dose_ml: float
    times: List[str]


class CorrectionOut(BaseModel):
    volume_l: float
    plan: PlanIn
    alk: CorrectionParameterOut
    ca: CorrectionParameterOut
    mg: CorrectionParameterOut


class BatchResult(BaseModel):
    inserted: int
    updated: int
