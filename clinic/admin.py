"""
Django admin registrations for the clinic models.

Audit entries are append-only: the admin lists and filters them but
offers no add, change or delete.
"""

from django.contrib import admin

from .models import Appointment, AuditLogEntry, MedicalRecord, Patient, User, UserSession


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'role', 'department', 'is_active', 'is_staff')
    list_filter = ('role', 'is_active', 'department')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'license_number')


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'created_at', 'expires_at', 'revoked_at', 'ip_address')
    list_filter = ('revoked_at',)
    search_fields = ('user__username', 'ip_address')
    raw_id_fields = ('user',)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('medical_record_number', 'last_name', 'first_name', 'cancer_type', 'cancer_stage',
                    'treatment_status', 'assigned_doctor')
    list_filter = ('treatment_status', 'cancer_stage', 'gender')
    search_fields = ('medical_record_number', 'first_name', 'last_name', 'email')
    raw_id_fields = ('assigned_doctor',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('patient', 'doctor', 'appointment_date', 'appointment_time', 'type', 'status')
    list_filter = ('status', 'type', 'appointment_date')
    search_fields = ('patient__last_name', 'patient__medical_record_number', 'doctor__username')
    raw_id_fields = ('patient', 'doctor', 'created_by')


@admin.register(MedicalRecord)
class MedicalRecordAdmin(admin.ModelAdmin):
    list_display = ('title', 'patient', 'record_type', 'record_date', 'is_confidential', 'author')
    list_filter = ('record_type', 'is_confidential')
    search_fields = ('title', 'patient__medical_record_number')
    raw_id_fields = ('patient', 'author', 'related_appointment')


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'user_id', 'action', 'resource_type', 'resource_id', 'outcome',
                    'phi_accessed', 'data_classification')
    list_filter = ('outcome', 'phi_accessed', 'data_classification', 'resource_type')
    search_fields = ('user_id', 'user_email', 'action', 'resource_id', 'patient_id')
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
