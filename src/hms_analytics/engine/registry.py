# src/hms_analytics/engine/registry.py
"""Canonical lookup table of category metadata used by builders and narratives."""

from __future__ import annotations

import calendar
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_COLOR = "#9E9E9E"
TYPE_PALETTE: Tuple[str, ...] = ("#2196F3", "#4CAF50", "#FF9800", "#9C27B0", "#F44336", "#00BCD4")

OTHER_KEY = "OTHER"
OTHER_LABEL = "Other"
UNKNOWN_LABEL = "Unknown"

MONTH_NAMES: Tuple[str, ...] = tuple(calendar.month_name[m] for m in range(1, 13))
# ISO weekday order, Monday = 1
DAY_NAMES: Tuple[str, ...] = tuple(calendar.day_name[d] for d in range(7))

SECTION_NAMES: Tuple[str, ...] = (
    "introduction",
    "trends",
    "performance",
    "units",
    "machines",
    "patients",
    "impact",
    "conclusion",
    "recommendations",
)


class CategoryMeta(BaseModel):
    """Display metadata of one category value."""
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    color: str = DEFAULT_COLOR
    description: Optional[str] = None
    table_number: Optional[str] = None


def _meta(key: str, label: str, color: str = DEFAULT_COLOR, **kw) -> CategoryMeta:
    return CategoryMeta(key=key, label=label, color=color, **kw)


# -----------------------------
# Enumerations (declared order)
# -----------------------------
APPOINTMENT_STATUSES: Tuple[str, ...] = (
    "SCHEDULED", "CONFIRMED", "IN_PROGRESS", "COMPLETED", "CANCELLED", "NO_SHOW",
)
APPOINTMENT_TYPES: Tuple[str, ...] = (
    "CONSULTATION", "ULTRASOUND", "NATIVE_RENAL_BIOPSY", "GRAFT_RENAL_BIOPSY",
    "WOUND_DRESSING", "RADIOLOGY", "FOLLOW_UP", "EMERGENCY",
)
PRESCRIPTION_STATUSES: Tuple[str, ...] = (
    "PENDING", "ACTIVE", "IN_PROGRESS", "READY", "COMPLETED", "DISCONTINUED", "EXPIRED",
)
SESSION_STATUSES: Tuple[str, ...] = ("SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELLED", "NO_SHOW")
SESSION_TYPES: Tuple[str, ...] = (
    "HEMODIALYSIS", "PERITONEAL_DIALYSIS", "CONTINUOUS_RENAL_REPLACEMENT", "PLASMAPHERESIS",
)
LAB_STATUSES: Tuple[str, ...] = ("PENDING", "IN_PROGRESS", "COMPLETED", "CANCELLED")
LAB_PRIORITIES: Tuple[str, ...] = ("URGENT", "NORMAL")
GENDERS: Tuple[str, ...] = ("MALE", "FEMALE")
AGE_GROUPS: Tuple[str, ...] = ("0-17", "18-29", "30-49", "50-64", "65+")

# Hospital-wide ward list used for occupancy denominators
HOSPITAL_WARDS: Tuple[str, ...] = ("Ward1", "Ward2", "Ward3", "Ward4")
WARD_TYPES: Dict[str, str] = {
    "Ward1": "General",
    "Ward2": "General",
    "Ward3": "ICU",
    "Ward4": "Dialysis",
}

# -----------------------------
# Status / type metadata
# -----------------------------
_STATUS_COLORS: Dict[str, str] = {
    "COMPLETED": "#4CAF50",
    "CANCELLED": "#F44336",
    "DISCONTINUED": "#F44336",
    "SCHEDULED": "#2196F3",
}

_STATUS_LABELS: Dict[str, str] = {
    "SCHEDULED": "Scheduled",
    "CONFIRMED": "Confirmed",
    "IN_PROGRESS": "In Progress",
    "COMPLETED": "Completed",
    "CANCELLED": "Cancelled",
    "NO_SHOW": "No Show",
    "PENDING": "Pending",
    "ACTIVE": "Active",
    "READY": "Ready",
    "DISCONTINUED": "Cancelled",  # shown as cancelled on printed reports
    "EXPIRED": "Expired",
    "DISCHARGED": "Discharged",
    "TRANSFERRED": "Transferred",
}

_TYPE_LABELS: Dict[str, str] = {
    "CONSULTATION": "Consultation",
    "ULTRASOUND": "Ultrasound",
    "NATIVE_RENAL_BIOPSY": "Native Renal Biopsy",
    "GRAFT_RENAL_BIOPSY": "Graft Renal Biopsy",
    "WOUND_DRESSING": "Wound Dressing",
    "RADIOLOGY": "Radiology",
    "FOLLOW_UP": "Follow-up",
    "EMERGENCY": "Emergency",
    "HEMODIALYSIS": "Hemodialysis",
    "PERITONEAL_DIALYSIS": "Peritoneal Dialysis",
    "CONTINUOUS_RENAL_REPLACEMENT": "Continuous Renal Replacement",
    "PLASMAPHERESIS": "Plasmapheresis",
    "LOW": "Low",
    "NORMAL": "Normal",
    "HIGH": "High",
    "URGENT": "Urgent",
    "MALE": "Male",
    "FEMALE": "Female",
}

STATUS_META: Dict[str, CategoryMeta] = {
    key: _meta(key, label, _STATUS_COLORS.get(key, DEFAULT_COLOR))
    for key, label in _STATUS_LABELS.items()
}

TYPE_META: Dict[str, CategoryMeta] = {
    key: _meta(key, label, TYPE_PALETTE[i % len(TYPE_PALETTE)])
    for i, (key, label) in enumerate(_TYPE_LABELS.items())
}

# -----------------------------
# Clinical units (clinic report)
# -----------------------------
_DEFAULT_UNIT_DESCRIPTION = "The %s unit provides specialized medical care and treatment services."

SPECIALIZATION_DESCRIPTIONS: Dict[str, str] = {
    "nephrology": (
        "Our clinic stands as a distinguished center of excellence in the field of nephrology, "
        "dedicated to providing specialized care and treatment for individuals grappling with "
        "renal conditions."
    ),
    "urology": (
        "The Urology department provides comprehensive urological care including kidney "
        "transplant and surgical procedures."
    ),
    "surgical": (
        "The Surgical unit handles complex surgical procedures with specialized care and "
        "post-operative management."
    ),
}

TABLE_NUMBERS: Dict[str, str] = {
    "nephrology unit 1": "5.1",
    "nephrology unit 2": "5.2",
    "professor unit": "5.3",
    "urology and transplant": "5.4",
}
DEFAULT_TABLE_NUMBER = "5.X"


# -----------------------------
# Lookups
# -----------------------------
def type_label(key: str) -> str:
    meta = TYPE_META.get(key)
    return meta.label if meta else key.replace("_", " ").title()


def label_for(key: str) -> str:
    """Label for any enumerated key (status first, then type tables)."""
    if key == OTHER_KEY:
        return OTHER_LABEL
    if key in STATUS_META:
        return STATUS_META[key].label
    return type_label(key)


def color_for(key: str) -> str:
    if key in STATUS_META:
        return STATUS_META[key].color
    if key in TYPE_META:
        return TYPE_META[key].color
    return DEFAULT_COLOR


def unit_meta(name: str, specialization: Optional[str] = None) -> CategoryMeta:
    """
    Metadata for a clinical unit.

    The description follows the unit's specialization; the table number
    follows the unit name, with '5.X' for units outside the printed layout.
    """
    spec = (specialization or "").strip().lower()
    description = SPECIALIZATION_DESCRIPTIONS.get(spec, _DEFAULT_UNIT_DESCRIPTION % name)
    table_number = TABLE_NUMBERS.get(name.strip().lower(), DEFAULT_TABLE_NUMBER)
    return _meta(name, name, description=description, table_number=table_number)


def normalize_ward(name: Optional[str]) -> Optional[str]:
    """Canonical ward key: 'Ward 1', 'ward1' and 'Ward1' all map to 'Ward1'."""
    if name is None:
        return None
    compact = "".join(name.split())
    if compact.lower().startswith("ward"):
        return "Ward" + compact[4:]
    return name.strip()


def ward_label(key: str) -> str:
    """Display label for a canonical ward key ('Ward1' -> 'Ward 1')."""
    if key.startswith("Ward") and key[4:].isdigit():
        return f"Ward {key[4:]}"
    return key


def ward_type(key: Optional[str]) -> str:
    return WARD_TYPES.get(normalize_ward(key) or "", UNKNOWN_LABEL)


def age_group(age: Optional[float]) -> str:
    if age is None:
        return UNKNOWN_LABEL
    if age < 18:
        return "0-17"
    if age < 30:
        return "18-29"
    if age < 50:
        return "30-49"
    if age < 65:
        return "50-64"
    return "65+"
