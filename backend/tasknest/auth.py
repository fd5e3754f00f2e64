"""
Firebase authentication for FastAPI.

Verifies Firebase ID tokens and extracts user information. The Admin SDK is
initialized on the first verification, not at import time.
"""

import os
from pathlib import Path

import firebase_admin
from firebase_admin import auth, credentials
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from tasknest.config import get_settings
from tasknest.logging_config import get_logger

logger = get_logger(__name__)


def _candidate_key_paths() -> list[Path]:
    # __file__ = backend/tasknest/auth.py -> .parent.parent = backend/
    backend_dir = Path(__file__).parent.parent

    paths = []
    configured = get_settings().firebase_credentials
    if configured:
        paths.append(Path(configured))
    env_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
    if env_path:
        paths.append(Path(env_path))
    paths.extend([
        backend_dir / "serviceAccountKey.json",
        backend_dir / "firebase-service-account.json",
    ])
    # Firebase's default naming pattern: *-firebase-adminsdk-*.json
    paths.extend(sorted(backend_dir.glob("*-firebase-adminsdk-*.json")))
    return paths


def _init_firebase() -> None:
    try:
        firebase_admin.get_app()
        return  # Already initialized
    except ValueError:
        pass

    for key_path in _candidate_key_paths():
        if key_path.is_file():
            firebase_admin.initialize_app(credentials.Certificate(str(key_path)))
            logger.info(f"Firebase Admin SDK initialized with: {key_path.name}")
            return

    logger.warning("No Firebase service account key found! Token verification may fail.")
    firebase_admin.initialize_app()
    logger.info("Firebase Admin SDK initialized without credentials")


security = HTTPBearer()


class AuthenticatedUser:
    """Represents an authenticated user from Firebase."""

    def __init__(self, uid: str, email: str | None, name: str | None):
        self.uid = uid
        self.email = email
        self.name = name

    def __repr__(self):
        return f"AuthenticatedUser(uid={self.uid}, email={self.email})"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthenticatedUser:
    """
    Verify Firebase ID token and return authenticated user.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    _init_firebase()
    try:
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        logger.warning("Expired Firebase token")
        raise _unauthorized("Token has expired")
    except auth.InvalidIdTokenError:
        logger.warning("Invalid Firebase token")
        raise _unauthorized("Invalid authentication token")
    except Exception as e:
        logger.error(f"Authentication error: {e}")
        raise _unauthorized("Authentication failed")

    user = AuthenticatedUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        name=decoded_token.get("name"),
    )
    logger.debug(f"Authenticated user: {user.uid} ({user.email})")
    return user
