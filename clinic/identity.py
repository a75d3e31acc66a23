"""
Identity resolution for the request gate.

An :class:`AuthProvider` turns an opaque credential into an
:class:`Identity` (or ``None``).  The provider in use is chosen once from
the ``AUTH_PROVIDER`` setting; business code never inspects which one it
got.

``SessionTokenProvider`` is the production provider: credentials are
simplejwt access tokens that carry the id of a server-side
:class:`~clinic.models.UserSession`, so revoking the session (logout)
invalidates the token before it expires.  ``FixtureAuthProvider`` serves
identities declared in settings and is meant for tests and local demos.
"""
from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional

from django.conf import settings
from django.core.signals import setting_changed
from django.db import DatabaseError
from django.dispatch import receiver
from django.utils import timezone
from django.utils.module_loading import import_string
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import AccessToken

from .models import User, UserSession
from .permissions import effective_permissions

logger = logging.getLogger(__name__)

SESSION_CLAIM = 'sid'


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    role: str
    department: str = ''
    permissions: frozenset[str] = field(default_factory=frozenset)
    session_id: str = 'unknown'
    name: str = ''
    expires_at: Optional[datetime] = None
    # primary key of the local User row, when there is one
    user_pk: Optional[int] = None

    @classmethod
    def from_user(cls, user: User, session: Optional[UserSession] = None) -> 'Identity':
        return cls(
            id=str(user.pk),
            email=user.email,
            role=user.role,
            department=user.department,
            permissions=effective_permissions(user.role, user.permissions),
            session_id=str(session.pk) if session else 'unknown',
            name=user.get_full_name() or user.username,
            expires_at=session.expires_at if session else None,
            user_pk=user.pk,
        )


class AuthProvider:
    """Resolves credentials to identities."""

    name = 'abstract'

    def resolve(self, token: str) -> Optional[Identity]:
        raise NotImplementedError

    def revoke(self, identity: Identity) -> None:
        raise NotImplementedError

    def ping(self) -> bool:
        """Connectivity check used by the health endpoint."""
        raise NotImplementedError


class SessionTokenProvider(AuthProvider):
    name = 'session-token'

    def issue(self, user: User, *, ip_address: str = '', user_agent: str = '') -> tuple[str, UserSession]:
        """Open a session for ``user`` and return ``(token, session)``."""
        lifetime = timedelta(hours=settings.SESSION_LIFETIME_HOURS)
        session = UserSession.objects.create(
            user=user,
            expires_at=timezone.now() + lifetime,
            ip_address=(ip_address or '')[:64],
            user_agent=(user_agent or '')[:255],
        )
        token = AccessToken.for_user(user)
        token.set_exp(lifetime=lifetime)
        token[SESSION_CLAIM] = str(session.pk)
        return str(token), session

    def resolve(self, token: str) -> Optional[Identity]:
        try:
            access = AccessToken(token)
        except TokenError:
            return None
        try:
            session_id = uuid.UUID(str(access.get(SESSION_CLAIM)))
        except ValueError:
            return None
        session = (
            UserSession.objects.select_related('user')
            .filter(pk=session_id, revoked_at__isnull=True, expires_at__gt=timezone.now())
            .first()
        )
        if session is None or not session.user.is_active:
            return None
        if str(access.get(jwt_settings.USER_ID_CLAIM)) != str(session.user_id):
            return None
        return Identity.from_user(session.user, session)

    def revoke(self, identity: Identity) -> None:
        try:
            session_id = uuid.UUID(identity.session_id)
        except ValueError:
            return
        UserSession.objects.filter(pk=session_id, revoked_at__isnull=True).update(revoked_at=timezone.now())

    def ping(self) -> bool:
        try:
            UserSession.objects.order_by().values('pk')[:1].exists()
        except DatabaseError:
            logger.warning('identity store unreachable', exc_info=True)
            return False
        return True


def fixture_session_id(token: str) -> str:
    """Stable per-token session id that does not reveal the token."""
    return "fixture-" + hashlib.sha256(token.encode()).hexdigest()[:16]


class FixtureAuthProvider(AuthProvider):
    """Identities declared in ``settings.FIXTURE_IDENTITIES``.

    Each entry maps a token to ``id``, ``email``, ``role``, and optionally
    ``department``, ``permissions``, ``name`` and ``userPk``.  Permissions
    are taken as declared, without role defaults.
    """
    name = 'fixture'

    def __init__(self, identities: Optional[dict] = None):
        self._identities = dict(settings.FIXTURE_IDENTITIES if identities is None else identities)
        self._revoked: set[str] = set()

    def resolve(self, token: str) -> Optional[Identity]:
        entry = self._identities.get(token)
        if not entry or token in self._revoked:
            return None
        return Identity(
            id=str(entry['id']),
            email=entry.get('email', ''),
            role=entry.get('role', ''),
            department=entry.get('department', ''),
            permissions=frozenset(entry.get('permissions', [])),
            session_id=fixture_session_id(token),
            name=entry.get('name', ''),
            user_pk=entry.get('userPk'),
        )

    def revoke(self, identity: Identity) -> None:
        for token, entry in self._identities.items():
            if str(entry['id']) == identity.id:
                self._revoked.add(token)

    def ping(self) -> bool:
        return True


@lru_cache(maxsize=None)
def get_auth_provider() -> AuthProvider:
    return import_string(settings.AUTH_PROVIDER)()


@receiver(setting_changed)
def _reset_provider(*, setting, **kwargs):
    if setting in {'AUTH_PROVIDER', 'FIXTURE_IDENTITIES', 'SESSION_LIFETIME_HOURS'}:
        get_auth_provider.cache_clear()
