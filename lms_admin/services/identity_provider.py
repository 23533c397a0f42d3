"""Identity provider abstraction for federated (Google/GitHub) sign-in accounts."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

from lms_admin.core.config import FIREBASE_CREDENTIALS

IdentityBackendFactory = Callable[..., Optional["IdentityProvider"]]


class IdentityProvider(ABC):
    @abstractmethod
    def find_user_id_by_email(self, email: str) -> Optional[str]:
        """Return the provider uid for ``email``, or None when no account exists."""
        raise NotImplementedError

    @abstractmethod
    def delete_user(self, uid: str) -> None:
        raise NotImplementedError


class FirebaseIdentityProvider(IdentityProvider):
    APP_NAME = "lms-admin"

    def __init__(self, credentials_path: str):
        try:
            self._app = firebase_admin.get_app(self.APP_NAME)
        except ValueError:
            self._app = firebase_admin.initialize_app(
                credentials.Certificate(credentials_path), name=self.APP_NAME
            )

    def find_user_id_by_email(self, email: str) -> Optional[str]:
        try:
            record = firebase_auth.get_user_by_email(email, app=self._app)
        except firebase_auth.UserNotFoundError:
            return None
        return record.uid

    def delete_user(self, uid: str) -> None:
        firebase_auth.delete_user(uid, app=self._app)


_IDENTITY_BACKENDS: Dict[str, IdentityBackendFactory] = {}


def register_identity_backend(name: str, factory: IdentityBackendFactory) -> None:
    _IDENTITY_BACKENDS[name] = factory


def _ensure_default_backends() -> None:
    if "firebase" in _IDENTITY_BACKENDS:
        return

    def _firebase_factory(**kwargs) -> Optional[IdentityProvider]:
        credentials_path = kwargs.get("credentials_path") or FIREBASE_CREDENTIALS
        if not credentials_path:
            return None
        return FirebaseIdentityProvider(credentials_path=credentials_path)

    register_identity_backend("firebase", _firebase_factory)


def create_identity_provider(
    backend: str = "firebase", **kwargs
) -> Optional[IdentityProvider]:
    _ensure_default_backends()
    factory = _IDENTITY_BACKENDS.get(backend)
    if not factory:
        return None
    return factory(**kwargs)
