"""Correction calculator for the Red Sea Foundation A/B/C liquids.

Turns current/target readings for alkalinity, calcium and magnesium into the
volume of product required and spreads it over a dosing-pump schedule.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

import pandas as pd


@dataclass(frozen=True)
class Supplement:
    key: str
    parameter: str
    product: str
    channel: str
    unit: str
    unit_delta: float  # change per 1 mL in 100 L
    max_daily: float


ALKALINITY = Supplement("alk", "Alkalinity", "KH (Foundation B)", "CH1", "dKH", 0.1, 1.0)
CALCIUM = Supplement("ca", "Calcium", "Ca (Foundation A)", "CH2", "ppm", 2.0, 20.0)
MAGNESIUM = Supplement("mg", "Magnesium", "Mg (Foundation C)", "CH3", "ppm", 1.0, 50.0)

SUPPLEMENTS: Sequence[Supplement] = (ALKALINITY, CALCIUM, MAGNESIUM)

CSV_COLUMNS = ["Channel", "Date", "Hour", "Product", "mL"]

# Largest plan the API will build; hour slots repeat past 24 doses a day
MAX_PLAN_DAYS = 365
MAX_DOSES_PER_DAY = 24


@dataclass
class DosingPlan:
    days: int = 3
    doses_per_day: int = 2
    start_hour: int = 8

    @property
    def slots(self) -> int:
        if self.days <= 0 or self.doses_per_day <= 0:
            return 0
        return self.days * self.doses_per_day


@dataclass
class CorrectionTarget:
    volume_l: float = 100.0
    current_alk: float = 8.0
    target_alk: float = 8.5
    current_ca: float = 420.0
    target_ca: float = 440.0
    current_mg: float = 1350.0
    target_mg: float = 1400.0

    def pair(self, key: str):
        return getattr(self, f"current_{key}"), getattr(self, f"target_{key}")


@dataclass
class Schedule:
    per_dose_ml: float = 0.0
    times: List[str] = field(default_factory=list)


@dataclass
class ParameterCorrection:
    supplement: Supplement
    requested_delta: float
    applied_delta: float
    total_ml: float
    schedule: Schedule


def required_ml(delta: float, unit_delta: float, volume_l: float) -> float:
    return max(0.0, (delta / unit_delta) * (volume_l / 100.0))


def safe_clamp(delta: float, per_day: float, days: int) -> float:
    limit = per_day * days
    return math.copysign(min(abs(delta), limit), delta) if delta else 0.0


def make_schedule(total_ml: float, plan: DosingPlan, start: Optional[date] = None) -> Schedule:
    slots = plan.slots
    if slots <= 0:
        return Schedule()
    start = start or date.today()
    times: List[str] = []
    for d in range(plan.days):
        day = start + timedelta(days=d)
        for i in range(plan.doses_per_day):
            hour = (plan.start_hour + int(math.floor(i * (24 / plan.doses_per_day)))) % 24
            times.append(f"{day.isoformat()} {hour:02d}:00")
    return Schedule(per_dose_ml=total_ml / slots, times=times)


def compute_correction(
    target: CorrectionTarget, plan: DosingPlan, start: Optional[date] = None
) -> List[ParameterCorrection]:
    results: List[ParameterCorrection] = []
    for sup in SUPPLEMENTS:
        current, wanted = target.pair(sup.key)
        requested = wanted - current
        applied = max(0.0, safe_clamp(requested, sup.max_daily, plan.days))
        total = required_ml(applied, sup.unit_delta, target.volume_l)
        results.append(
            ParameterCorrection(
                supplement=sup,
                requested_delta=requested,
                applied_delta=applied,
                total_ml=total,
                schedule=make_schedule(total, plan, start),
            )
        )
    return results


def split_slot(slot: str):
    day, hour = slot.split(" ", 1)
    return day, hour


def schedule_frame(corrections: Sequence[ParameterCorrection]) -> pd.DataFrame:
    rows = []
    for c in corrections:
        for slot in c.schedule.times:
            day, hour = split_slot(slot)
            rows.append({
                "Channel": c.supplement.channel,
                "Date": day,
                "Hour": hour,
                "Product": c.supplement.product,
                "mL": f"{c.schedule.per_dose_ml:.2f}",
            })
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def schedule_to_csv(corrections: Sequence[ParameterCorrection]) -> str:
    return schedule_frame(corrections).to_csv(index=False, lineterminator="\n")


def dose_entries(corrections: Sequence[ParameterCorrection]) -> List[Dict[str, object]]:
    """Dose-log rows for every scheduled slot, in slot order."""
    entries: List[Dict[str, object]] = []
    for c in corrections:
        label = c.supplement.parameter
        amount = round(c.schedule.per_dose_ml, 2)
        for slot in c.schedule.times:
            day, hour = split_slot(slot)
            entries.append({
                "date": day,
                "product": label,
                "amount": amount,
                "unit": "mL",
                "notes": f"Correction plan {label} @ {hour}",
            })
    return entries


def summarize(corrections: Sequence[ParameterCorrection]) -> Dict[str, Dict[str, object]]:
    out: Dict[str, Dict[str, object]] = {}
    for c in corrections:
        out[c.supplement.key] = {
            "parameter": c.supplement.parameter,
            "product": c.supplement.product,
            "channel": c.supplement.channel,
            "unit": c.supplement.unit,
            "requested_delta": c.requested_delta,
            "applied_delta": c.applied_delta,
            "clamped": c.applied_delta < c.requested_delta,
            "total_ml": c.total_ml,
            "per_dose_ml": c.schedule.per_dose_ml,
            "times": list(c.schedule.times),
        }
    return out
