# src/hms_analytics/reports/catalog.py
"""
Registry of report kinds the assembler can build.
"""
from __future__ import annotations

from typing import Dict, List

from . import appointments, clinic, dialysis, lab, prescriptions, wards
from .base import ReportSpec

REPORTS: Dict[str, ReportSpec] = {
    spec.kind: spec
    for spec in (
        ReportSpec(appointments.KIND, appointments.TITLE, (appointments.SOURCE,), appointments.build),
        ReportSpec(clinic.KIND, clinic.TITLE, ("appointments", "admissions"), clinic.build),
        ReportSpec(wards.KIND, wards.TITLE, (wards.SOURCE,), wards.build),
        ReportSpec(dialysis.KIND, dialysis.TITLE, (dialysis.SOURCE,), dialysis.build),
        ReportSpec(prescriptions.KIND, prescriptions.TITLE, (prescriptions.SOURCE,), prescriptions.build),
        ReportSpec(lab.KIND, lab.TITLE, (lab.SOURCE,), lab.build),
    )
}


def available_kinds() -> List[str]:
    return sorted(REPORTS)
