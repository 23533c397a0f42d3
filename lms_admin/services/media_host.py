"""Media host abstraction and registry for asset storage backends."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import cloudinary
import cloudinary.uploader

from lms_admin.core.config import (
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
    CLOUDINARY_CLOUD_NAME,
)
from lms_admin.core.errors import ExternalServiceError

MediaBackendFactory = Callable[..., Optional["MediaHost"]]

RESOURCE_TYPES = ("video", "image")


class MediaHost(ABC):
    """Delete-by-identifier access to uploaded images and videos."""

    @abstractmethod
    def destroy(self, public_id: str, resource_type: str) -> None:
        raise NotImplementedError


class CloudinaryMediaHost(MediaHost):
    # "not found" means the asset is already gone, which is what we wanted
    _OK_RESULTS = ("ok", "not found")

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        self._config = cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    def destroy(self, public_id: str, resource_type: str) -> None:
        if resource_type not in RESOURCE_TYPES:
            raise ValueError(f"Unsupported resource type: {resource_type}")
        response: Dict[str, Any] = cloudinary.uploader.destroy(
            public_id, resource_type=resource_type, invalidate=True
        )
        result = response.get("result")
        if result not in self._OK_RESULTS:
            raise ExternalServiceError(
                "Cloudinary",
                f"could not delete {resource_type} {public_id}",
                details={"result": result},
            )


_MEDIA_BACKENDS: Dict[str, MediaBackendFactory] = {}


def register_media_backend(name: str, factory: MediaBackendFactory) -> None:
    _MEDIA_BACKENDS[name] = factory


def _ensure_default_backends() -> None:
    if "cloudinary" in _MEDIA_BACKENDS:
        return

    def _cloudinary_factory(**kwargs) -> Optional[MediaHost]:
        cloud_name = kwargs.get("cloud_name") or CLOUDINARY_CLOUD_NAME
        api_key = kwargs.get("api_key") or CLOUDINARY_API_KEY
        api_secret = kwargs.get("api_secret") or CLOUDINARY_API_SECRET
        if not (cloud_name and api_key and api_secret):
            return None
        return CloudinaryMediaHost(
            cloud_name=cloud_name, api_key=api_key, api_secret=api_secret
        )

    register_media_backend("cloudinary", _cloudinary_factory)


def create_media_host(backend: str = "cloudinary", **kwargs) -> Optional[MediaHost]:
    _ensure_default_backends()
    factory = _MEDIA_BACKENDS.get(backend)
    if not factory:
        return None
    return factory(**kwargs)
