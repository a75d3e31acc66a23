"""
Permission strings, role defaults and record-level access rules.

Permissions are plain strings matched exactly (case-sensitive, no
wildcards or hierarchy).  A resolved identity holds the union of the
explicit permissions stored for the user and the defaults of its role.
"""
from __future__ import annotations

from typing import Iterable

PATIENT_READ = 'patient_read'
PATIENT_WRITE = 'patient_write'
PATIENT_READ_ALL = 'patient_read_all'
PATIENT_WRITE_ALL = 'patient_write_all'
APPOINTMENT_READ = 'appointment_read'
APPOINTMENT_WRITE = 'appointment_write'
MEDICAL_RECORD_READ = 'medical_record_read'
MEDICAL_RECORD_WRITE = 'medical_record_write'
AUDIT_READ = 'audit_read'

ADMIN_ROLES = {"admin"}

ROLE_DEFAULT_PERMISSIONS: dict[str, frozenset[str]] = {
    'admin': frozenset({
        PATIENT_READ, PATIENT_WRITE, PATIENT_READ_ALL, PATIENT_WRITE_ALL,
        APPOINTMENT_READ, APPOINTMENT_WRITE,
        MEDICAL_RECORD_READ, MEDICAL_RECORD_WRITE,
        AUDIT_READ,
    }),
    'doctor': frozenset({
        PATIENT_READ, PATIENT_WRITE,
        APPOINTMENT_READ, APPOINTMENT_WRITE,
        MEDICAL_RECORD_READ, MEDICAL_RECORD_WRITE,
    }),
    'nurse': frozenset({PATIENT_READ, APPOINTMENT_READ, APPOINTMENT_WRITE, MEDICAL_RECORD_READ}),
    'researcher': frozenset({PATIENT_READ}),
    'technician': frozenset({MEDICAL_RECORD_READ}),
}


def effective_permissions(role: str, explicit: Iterable[str] | None) -> frozenset[str]:
    """Role defaults plus explicit grants; non-string entries are ignored."""
    granted = {p for p in (explicit or []) if isinstance(p, str)}
    return ROLE_DEFAULT_PERMISSIONS.get(role, frozenset()) | granted


def missing_permissions(held: Iterable[str], required: Iterable[str]) -> list[str]:
    held = set(held)
    return [p for p in required if p not in held]


def can_access_patient(identity, patient, *, write: bool = False) -> bool:
    """Admins, the assigned doctor, or holders of the *_all permission."""
    if identity.role in ADMIN_ROLES:
        return True
    if identity.user_pk is not None and patient.assigned_doctor_id == identity.user_pk:
        return True
    return (PATIENT_WRITE_ALL if write else PATIENT_READ_ALL) in identity.permissions
