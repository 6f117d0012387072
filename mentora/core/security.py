"""
Bearer credential verification against Firebase Authentication.
The identity provider is the only issuer of tokens; this service never mints them.
"""
from typing import Any, Optional

import firebase_admin
from firebase_admin import auth, credentials, exceptions as firebase_exceptions

from mentora.core.config import settings


FIREBASE_APP_NAME = "mentora"


class InvalidCredentialError(Exception):
    """Raised when a bearer token is malformed, expired, revoked or unverifiable."""


class IdentityVerifier:
    """Thin wrapper over the Firebase Admin SDK token verification."""

    def __init__(self) -> None:
        self.app: Optional[firebase_admin.App] = None

    def _build_credential(self) -> Optional[credentials.Base]:
        if settings.FIREBASE_CREDENTIALS_FILE:
            return credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)
        if settings.firebase_configured:
            return credentials.Certificate({
                "type": "service_account",
                "project_id": settings.FIREBASE_PROJECT_ID,
                "private_key": settings.firebase_private_key,
                "client_email": settings.FIREBASE_CLIENT_EMAIL,
                "token_uri": "https://oauth2.googleapis.com/token",
            })
        return None

    def initialize(self) -> None:
        """
        Initialize the Firebase app once per process.
        Without a service account, a bare project id is still enough to verify ID tokens.
        """
        if self.app is not None:
            return
        try:
            self.app = firebase_admin.get_app(FIREBASE_APP_NAME)
            return
        except ValueError:
            pass

        credential = self._build_credential()
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        if credential is None and options is None:
            raise RuntimeError("Firebase is not configured: set FIREBASE_CREDENTIALS_FILE or FIREBASE_PROJECT_ID")

        self.app = firebase_admin.initialize_app(credential, options, name=FIREBASE_APP_NAME)

    def verify(self, token: str) -> dict[str, Any]:
        """
        Verify an ID token and return its decoded claims.

        Raises:
            InvalidCredentialError: if the provider rejects the token
        """
        if self.app is None:
            raise InvalidCredentialError("Identity provider is not initialized")
        try:
            return auth.verify_id_token(token, app=self.app)
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            raise InvalidCredentialError(str(e)) from e


# Global verifier instance
identity_verifier = IdentityVerifier()


def get_identity_verifier() -> IdentityVerifier:
    """Dependency that provides the process-wide identity verifier."""
    return identity_verifier
