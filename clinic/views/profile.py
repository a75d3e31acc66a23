"""
Self-service profile of the calling user.

Only the fields in :data:`~clinic.services.profiles.PROFILE_FIELDS` can
be changed here; role, permissions and email are managed by admins.
"""
from __future__ import annotations

from rest_framework.decorators import api_view

from .. import pipeline
from ..exceptions import NotFound
from ..models import AuditLogEntry, User
from ..serializers.profile import ProfileUpdateSerializer
from ..services.profiles import local_user, update_profile


def _serialize(user: User) -> dict:
    return {
        'id': str(user.pk),
        'username': user.username,
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'role': user.role,
        'department': user.department,
        'specialization': user.specialization,
        'phone': user.phone,
        'licenseNumber': user.license_number,
        'lastLogin': user.last_login.isoformat() if user.last_login else None,
    }


def _require_user(ctx) -> User:
    ctx.resource_id = ctx.identity.id
    user = local_user(ctx.identity)
    if user is None:
        raise NotFound('User profile not found')
    return user


def _view_profile(ctx):
    user = _require_user(ctx)
    ctx.message = 'Profile retrieved successfully'
    return _serialize(user)


def _update_profile(ctx):
    user = _require_user(ctx)
    updated = update_profile(user, ctx.data)
    ctx.message = 'Profile updated successfully'
    ctx.details = {'updatedFields': updated}
    return _serialize(user)


VIEW_PROFILE = pipeline.Endpoint(
    action='profile_view',
    resource_type='user',
    handler=_view_profile,
    bucket='auth',
    classification=AuditLogEntry.Classification.INTERNAL,
    phi=False,
)

UPDATE_PROFILE = pipeline.Endpoint(
    action='profile_update',
    resource_type='user',
    handler=_update_profile,
    serializer=ProfileUpdateSerializer,
    bucket='auth',
    classification=AuditLogEntry.Classification.INTERNAL,
    phi=False,
)


@api_view(['GET', 'PUT'])
def profile(request):
    if request.method == 'PUT':
        return pipeline.run(UPDATE_PROFILE, request)
    return pipeline.run(VIEW_PROFILE, request)
