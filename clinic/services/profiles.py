from typing import Optional

from clinic.models import User

PROFILE_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'phone': 'phone',
    'specialization': 'specialization',
}


def local_user(identity) -> Optional[User]:
    """The user row behind an identity, if the identity provider has one."""
    if identity.user_pk is None:
        return None
    return User.objects.filter(pk=identity.user_pk, is_active=True).first()


def update_profile(user: User, data: dict) -> list[str]:
    updated = [k for k in data if k in PROFILE_FIELDS]
    for key in updated:
        setattr(user, PROFILE_FIELDS[key], data[key])
    if updated:
        user.save(update_fields=[PROFILE_FIELDS[k] for k in updated])
    return updated
