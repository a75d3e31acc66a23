"""
URL mappings for the clinical API.

All routes live under ``/api/``.  Trailing slashes are deliberately
omitted so the paths match what the front-end calls.
"""
from django.urls import path

from .auth_views import login_view
from .views import appointments, audit_logs, health, medical_records, patients, profile, session

urlpatterns = [
    # Auth
    path('api/auth/login', login_view, name='login_view'),
    path('api/session', session.session, name='session'),
    path('api/profile', profile.profile, name='profile'),

    # Clinical data
    path('api/patients', patients.patients, name='patients'),
    path('api/patients/<uuid:patient_id>', patients.patient_detail, name='patient_detail'),
    path('api/appointments', appointments.appointments, name='appointments'),
    path('api/medical-records', medical_records.medical_records, name='medical_records'),

    # Compliance
    path('api/audit-logs', audit_logs.audit_logs, name='audit_logs'),
    path('api/audit-logs/metrics', audit_logs.audit_metrics, name='audit_metrics'),

    # Health
    path('api/health', health.healthz, name='healthz'),
]
