import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Text, Index, inspect as sa_inspect
from database import Base

READING_FIELDS = ("temp", "salinity", "ph", "alk", "ca", "mg", "no3", "po4", "ammonia", "nitrite")

def new_id() -> str:
    return uuid.uuid4().hex

def now_iso() -> str:
    return datetime.now().isoformat()

# Column values as a plain dict
class DictMixin:
    def to_dict(self):
        return {c.key: getattr(self, c.key) for c in sa_inspect(self).mapper.column_attrs}

class ParameterReading(Base, DictMixin):
    __tablename__ = "parameter_readings"
    id = Column(String(64), primary_key=True, default=new_id)
    date = Column(String, nullable=False)
    temp = Column(Float, nullable=True)
    salinity = Column(Float, nullable=True)
    ph = Column(Float, nullable=True)
    alk = Column(Float, nullable=True)
    ca = Column(Float, nullable=True)
    mg = Column(Float, nullable=True)
    no3 = Column(Float, nullable=True)
    po4 = Column(Float, nullable=True)
    ammonia = Column(Float, nullable=True)
    nitrite = Column(Float, nullable=True)
    created_at = Column(String, default=now_iso)
    __table_args__ = (Index("idx_parameter_readings_date", "date"),)

class DoseRecord(Base, DictMixin):
    __tablename__ = "dose_records"
    id = Column(String(64), primary_key=True, default=new_id)
    seq = Column(Integer, nullable=False)
    date = Column(String, nullable=False)
    product = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    unit = Column(String, nullable=False, default="mL")
    notes = Column(String, nullable=True)
    created_at = Column(String, default=now_iso)
    __table_args__ = (Index("idx_dose_records_seq", "seq"),)

class AppSetting(Base, DictMixin):
    __tablename__ = "app_settings"
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(String, default=now_iso, onupdate=now_iso)

class EventRecord(Base, DictMixin):
    __tablename__ = "events"
    id = Column(String(64), primary_key=True, default=new_id)
    date = Column(String, nullable=False)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False, default="Other")
    description = Column(Text, nullable=True)
    created_at = Column(String, default=now_iso)
    __table_args__ = (Index("idx_events_date", "date"),)

class LightChannel(Base, DictMixin):
    __tablename__ = "light_channels"
    id = Column(String(64), primary_key=True, default=new_id)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    intensity = Column(Integer, nullable=False, default=0)
    created_at = Column(String, default=now_iso)
