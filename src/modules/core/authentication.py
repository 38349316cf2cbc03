"""Firebase ID-token authentication backend for Django REST Framework.

Credential issuance (Firebase / Google sign-in) happens outside this
system; the mobile client only hands us the resulting ID token.  Tokens are
RS256 JWTs verified with PyJWT against Google's ``securetoken`` JWKS, which
``PyJWKClient`` caches in-memory (default 300 s) — no network call on every
request.

Security decisions
------------------
* **Fail Closed** — any decode / validation error returns 401.
* ``algorithms`` is hard-coded to RS256, never derived from the incoming
  token (prevents algorithm-confusion attacks).
* Audience (project id) **and** issuer are always validated.
* Tokens from other issuers are left to the next backend (SimpleJWT).
"""

from __future__ import annotations

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from shared.domain.lifecycle import USER_ROLE

logger = structlog.get_logger(__name__)

FIREBASE_ALGORITHM = "RS256"
FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)

_jwks_client: PyJWKClient | None = None


def firebase_issuer() -> str:
    project_id = getattr(settings, "FIREBASE_PROJECT_ID", "")
    return f"https://securetoken.google.com/{project_id}" if project_id else ""


def _get_jwks_client() -> PyJWKClient:
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = PyJWKClient(
            FIREBASE_JWKS_URL,
            cache_jwk_set=True,
            lifespan=300,
        )
    return _jwks_client


class FirebaseUser:
    """Lightweight user object for requests authenticated via Firebase.

    Firebase is the source of truth for identity — we do **not** require a
    local Django ``User`` row.  ``role`` comes from a custom claim.
    """

    def __init__(self, payload: dict):
        self.payload = payload
        self.uid: str = payload.get("user_id") or payload.get("sub", "")
        self.role: str = payload.get("role", USER_ROLE)
        self.email: str = payload.get("email", "")

    # DRF checks
    is_authenticated = True
    is_active = True

    @property
    def pk(self) -> str:
        """Throttles key users by ``pk``."""
        return self.uid

    def __str__(self) -> str:  # pragma: no cover
        return self.uid


class FirebaseJSONWebTokenAuthentication(BaseAuthentication):
    """DRF authentication class that validates Firebase ID tokens."""

    keyword = "Bearer"

    # ------------------------------------------------------------------
    # Public API (DRF contract)
    # ------------------------------------------------------------------

    def authenticate(self, request):
        """Return ``(FirebaseUser, token)`` or ``None`` (not a Firebase token)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None  # no credentials — let other backends try

        token = self._extract_token(header)

        issuer = firebase_issuer()
        if not issuer:
            return None
        if not self._token_has_issuer(token, issuer):
            return None

        payload = self._decode_token(token, issuer)
        user = FirebaseUser(payload)
        logger.info("jwt_authenticated", uid=user.uid, provider="firebase")
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _token_has_issuer(token: str, issuer: str) -> bool:
        try:
            payload = pyjwt.decode(
                token,
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except PyJWTError:
            return False
        return payload.get("iss") == issuer

    @staticmethod
    def _decode_token(token: str, issuer: str) -> dict:
        try:
            signing_key = _get_jwks_client().get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[FIREBASE_ALGORITHM],
                audience=settings.FIREBASE_PROJECT_ID,
                issuer=issuer,
            )
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
        return payload
