"""
Database models for the careportal backend.

These models capture the records that the request pipeline mediates
access to (patients, appointments, medical records), the server-side
sessions that back issued credentials, and the append-only audit trail
written for every request that reaches a resolved identity.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Clinical staff account.

    Besides the role, a user carries an explicit list of permission
    strings (e.g. ``patient_write``) that is merged with the defaults of
    the role when the identity is resolved.
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('researcher', 'Researcher'),
        ('technician', 'Technician'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='doctor', db_index=True)
    department = models.CharField(max_length=100, blank=True)
    specialization = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    license_number = models.CharField(max_length=50, blank=True)
    permissions = models.JSONField(default=list, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class UserSession(models.Model):
    """Server-side record behind an issued bearer credential.

    The UUID is the ``session_id`` seen in audit entries.  A session
    resolves to an identity only while it is neither expired nor revoked.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sessions')
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(db_index=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    ip_address = models.CharField(max_length=64, blank=True)
    user_agent = models.CharField(max_length=255, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'expires_at'], name='clinic_session_user_exp_idx'),
        ]

    @property
    def is_live(self) -> bool:
        return self.revoked_at is None and self.expires_at > timezone.now()

    def __str__(self) -> str:
        return f"{self.user_id}:{self.id}"


class Patient(models.Model):
    GENDER_CHOICES = [
        ('MALE', 'Male'),
        ('FEMALE', 'Female'),
        ('OTHER', 'Other'),
    ]
    CANCER_STAGE_CHOICES = [
        ('I', 'Stage I'),
        ('II', 'Stage II'),
        ('III', 'Stage III'),
        ('IV', 'Stage IV'),
    ]
    TREATMENT_STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('REMISSION', 'Remission'),
        ('CRITICAL', 'Critical'),
        ('INACTIVE', 'Inactive'),
        ('DECEASED', 'Deceased'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    address = models.TextField(blank=True)
    emergency_contact_name = models.CharField(max_length=100, blank=True)
    emergency_contact_phone = models.CharField(max_length=32, blank=True)
    # uniqueness is the only guarantee for generated numbers
    medical_record_number = models.CharField(max_length=32, unique=True)
    cancer_type = models.CharField(max_length=100, blank=True)
    cancer_stage = models.CharField(max_length=4, choices=CANCER_STAGE_CHOICES, blank=True)
    diagnosis_date = models.DateField(null=True, blank=True)
    treatment_status = models.CharField(
        max_length=20, choices=TREATMENT_STATUS_CHOICES, default='ACTIVE', db_index=True
    )
    assigned_doctor = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='assigned_patients'
    )
    medical_history = models.TextField(blank=True)
    allergies = models.JSONField(default=list, blank=True)
    current_medications = models.JSONField(default=list, blank=True)
    family_history = models.TextField(blank=True)
    insurance_provider = models.CharField(max_length=100, blank=True)
    insurance_policy_number = models.CharField(max_length=64, blank=True)
    last_visit = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='clinic_patient_name_idx'),
            models.Index(fields=['cancer_stage'], name='clinic_patient_stage_idx'),
            models.Index(fields=['updated_at'], name='clinic_patient_updated_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.medical_record_number} ({self.last_name})"


class Appointment(models.Model):
    TYPE_CHOICES = [
        ('CONSULTATION', 'Consultation'),
        ('FOLLOW_UP', 'Follow-up'),
        ('TREATMENT', 'Treatment'),
        ('TELEMEDICINE', 'Telemedicine'),
        ('EMERGENCY', 'Emergency'),
    ]
    STATUS_CHOICES = [
        ('SCHEDULED', 'Scheduled'),
        ('CONFIRMED', 'Confirmed'),
        ('IN_PROGRESS', 'In progress'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
        ('NO_SHOW', 'No show'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(User, on_delete=models.PROTECT, related_name='appointments')
    appointment_date = models.DateField()
    appointment_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=60)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='SCHEDULED', db_index=True)
    location = models.CharField(max_length=100, blank=True)
    room_number = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)
    preparation_instructions = models.TextField(blank=True)
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='created_appointments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['appointment_date', 'appointment_time'], name='clinic_appt_datetime_idx'),
            models.Index(fields=['doctor', 'appointment_date'], name='clinic_appt_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.type} {self.appointment_date} {self.appointment_time}"


class MedicalRecord(models.Model):
    RECORD_TYPE_CHOICES = [
        ('LAB_RESULT', 'Lab result'),
        ('IMAGING', 'Imaging'),
        ('PATHOLOGY', 'Pathology'),
        ('TREATMENT_NOTE', 'Treatment note'),
        ('PROGRESS_NOTE', 'Progress note'),
        ('DISCHARGE_SUMMARY', 'Discharge summary'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='medical_records')
    record_type = models.CharField(max_length=20, choices=RECORD_TYPE_CHOICES)
    title = models.CharField(max_length=200)
    content = models.TextField()
    record_date = models.DateField()
    attachments = models.JSONField(default=list, blank=True)
    is_confidential = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)
    related_appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='medical_records'
    )
    author = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='authored_records'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'record_date'], name='clinic_record_patient_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.record_type}: {self.title}"


class AppendOnlyQuerySet(models.QuerySet):
    """Queryset that refuses bulk mutation of audit rows."""

    def update(self, **kwargs):
        raise PermissionError("audit log entries are append-only")

    def delete(self):
        raise PermissionError("audit log entries are append-only")


class AuditLogEntry(models.Model):
    """Immutable trail entry: who did what, to which resource, with what outcome.

    The actor is stored by value (``user_id``/``user_email``) because
    identities are owned by the identity provider and may not have a
    local user row.  Rows are created once and never updated or
    deleted by the application.
    """
    OUTCOME_SUCCESS = 'SUCCESS'
    OUTCOME_FAILURE = 'FAILURE'
    OUTCOME_CHOICES = [
        (OUTCOME_SUCCESS, 'Success'),
        (OUTCOME_FAILURE, 'Failure'),
    ]

    class Classification(models.TextChoices):
        PUBLIC = 'PUBLIC', 'Public'
        INTERNAL = 'INTERNAL', 'Internal'
        RESTRICTED = 'RESTRICTED', 'Restricted'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, db_index=True)
    user_email = models.CharField(max_length=254, blank=True)
    action = models.CharField(max_length=64)
    resource_type = models.CharField(max_length=64)
    resource_id = models.CharField(max_length=64, default='unknown')
    patient_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    ip_address = models.CharField(max_length=64, default='unknown')
    user_agent = models.CharField(max_length=255, default='unknown')
    session_id = models.CharField(max_length=64, default='unknown')
    outcome = models.CharField(max_length=10, choices=OUTCOME_CHOICES)
    details = models.JSONField(default=dict, blank=True)
    phi_accessed = models.BooleanField(default=False)
    data_classification = models.CharField(
        max_length=12, choices=Classification.choices, default=Classification.RESTRICTED
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['action', 'created_at'], name='clinic_audit_action_idx'),
            models.Index(fields=['resource_type', 'resource_id', 'created_at'], name='clinic_audit_resource_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise PermissionError("audit log entries are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("audit log entries are append-only")

    def __str__(self) -> str:
        return f"{self.action} {self.outcome} by {self.user_id}"
