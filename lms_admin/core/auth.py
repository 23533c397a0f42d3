from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional, Dict, Any

import bcrypt
import jwt
from flask import request, jsonify, g

from lms_admin.core.config import (
    ADMIN_ROLE,
    JWT_ALGORITHM,
    JWT_EXPIRES_DAYS,
    JWT_SECRET,
)
from lms_admin.core.errors import (
    AuthenticationError,
    AuthorizationError,
    handle_exception,
)
from lms_admin.core.logging import get_logger

logger = get_logger("auth")

BCRYPT_MAX_BYTES = 72


class AuthService:
    def __init__(
        self,
        secret: str = JWT_SECRET,
        algorithm: str = JWT_ALGORITHM,
        expires_days: int = JWT_EXPIRES_DAYS,
        role: str = ADMIN_ROLE,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_days = expires_days
        self.role = role

    @staticmethod
    def _password_bytes(plain: str) -> bytes:
        # bcrypt only reads the first 72 bytes; newer releases raise past that
        return plain.encode("utf-8")[:BCRYPT_MAX_BYTES]

    @classmethod
    def hash_password(cls, plain: str) -> str:
        return bcrypt.hashpw(cls._password_bytes(plain), bcrypt.gensalt()).decode("utf-8")

    @classmethod
    def verify_password(cls, plain: str, hashed: Optional[str]) -> bool:
        if not plain or not hashed:
            return False
        try:
            return bcrypt.checkpw(cls._password_bytes(plain), hashed.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            logger.warning("Stored admin password is not a valid bcrypt hash")
            return False

    def issue_token(self, admin_id: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "id": admin_id,
            "role": self.role,
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.expires_days),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        if not token:
            raise AuthenticationError("No token provided")

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.error(f"JWT verification failed: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}")

        if payload.get("role") != self.role:
            raise AuthorizationError("Not authorized as admin")
        return payload

    def get_token_from_header(self) -> Optional[str]:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None

        return parts[1]


auth_service = AuthService()


def require_admin(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = auth_service.get_token_from_header()
        if not token:
            error_dict, status_code = handle_exception(
                AuthenticationError("Not authorized, no token")
            )
            return jsonify(error_dict), status_code

        try:
            g.admin = auth_service.verify_token(token)
        except (AuthenticationError, AuthorizationError) as e:
            error_dict, status_code = handle_exception(e)
            return jsonify(error_dict), status_code

        return f(*args, **kwargs)

    return decorated
