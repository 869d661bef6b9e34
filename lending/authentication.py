# lending/authentication.py
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings
from rest_framework import authentication, exceptions

from .models import User


class TokenPrincipal:
    """Identity decoded from a bearer token: id, email and role."""

    is_authenticated = True

    def __init__(self, id, email, role):
        self.id = id
        self.email = email
        self.role = role

    def __repr__(self):
        return f"TokenPrincipal(id={self.id!r}, role={self.role!r})"


def issue_token(user):
    now = datetime.now(timezone.utc)
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(seconds=settings.JWT_TTL_SECONDS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token):
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise exceptions.AuthenticationFailed("Token expired")
    except jwt.InvalidTokenError:
        raise exceptions.AuthenticationFailed("Invalid token")

    if not all(key in payload for key in ("id", "email", "role")):
        raise exceptions.AuthenticationFailed("Invalid token")
    # Tokens outlive deleted accounts; writes must not reference a missing user
    if not User.objects.filter(pk=payload["id"]).exists():
        raise exceptions.AuthenticationFailed("User no longer exists")
    return TokenPrincipal(payload["id"], payload["email"], payload["role"])


class JWTAuthentication(authentication.BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header:
            return None
        if header[0].lower() != self.keyword.lower().encode() or len(header) != 2:
            raise exceptions.AuthenticationFailed("Invalid token")

        try:
            token = header[1].decode()
        except UnicodeError:
            raise exceptions.AuthenticationFailed("Invalid token")
        return decode_token(token), token

    def authenticate_header(self, request):
        return self.keyword
