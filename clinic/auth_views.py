"""
Authentication views.

Login is a plain DRF view rather than a pipeline endpoint: there is no
identity yet, so it runs its own throttle and writes its own audit
entry.  Session inspection and logout live in ``clinic.views.session``.
"""
from __future__ import annotations

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .identity import Identity, SessionTokenProvider, get_auth_provider
from .models import AuditLogEntry
from .ratelimit import AuthBucketThrottle
from .responses import NO_STORE
from .serializers.auth import LoginSerializer
from .services import audit as audit_service


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([AuthBucketThrottle])
def login_view(request):
    """
    Username/password login.

    Opens a server-side session and returns a bearer token bound to it;
    the same token is set as an httponly cookie for browser clients.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    provider = get_auth_provider()
    if not isinstance(provider, SessionTokenProvider):
        resp = Response({'success': False, 'error': 'Password login is not available'}, status=501)
        resp['Cache-Control'] = NO_STORE
        return resp

    user = authenticate(request, username=username, password=password)
    if user is None:
        # record the attempted username only, never the password
        audit_service.record(
            identity=None,
            action='user_login',
            resource_type='session',
            outcome=audit_service.FAILURE,
            request=request,
            details={'username': username, 'error': 'Invalid credentials'},
            classification=AuditLogEntry.Classification.INTERNAL,
        )
        resp = Response({'success': False, 'error': 'Invalid credentials'}, status=401)
        resp['WWW-Authenticate'] = 'Bearer'
        resp['Cache-Control'] = NO_STORE
        return resp

    meta = audit_service.request_metadata(request)
    token, session = provider.issue(user, ip_address=meta['ip_address'], user_agent=meta['user_agent'])
    update_last_login(None, user)
    identity = Identity.from_user(user, session)

    audit_service.record(
        identity=identity,
        action='user_login',
        resource_type='session',
        resource_id=str(session.pk),
        outcome=audit_service.SUCCESS,
        request=request,
        details={'role': user.role},
        classification=AuditLogEntry.Classification.INTERNAL,
    )

    resp = Response({
        'success': True,
        'data': {
            'token': token,
            'tokenType': 'Bearer',
            'expiresAt': session.expires_at.isoformat(),
            'user': {
                'id': identity.id,
                'username': user.username,
                'email': user.email,
                'name': identity.name,
                'role': user.role,
                'department': user.department,
                'permissions': sorted(identity.permissions),
            },
        },
        'message': 'Login successful',
    }, status=200)
    resp['Cache-Control'] = NO_STORE
    resp.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.SESSION_LIFETIME_HOURS * 3600,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite='Lax',
    )
    return resp
