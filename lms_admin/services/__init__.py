"""Admin service plus the media-host and identity-provider backends it cleans up."""
from lms_admin.services.admin_service import AdminService
from lms_admin.services.identity_provider import IdentityProvider, create_identity_provider
from lms_admin.services.media_host import MediaHost, create_media_host

__all__ = [
    "AdminService",
    "IdentityProvider",
    "MediaHost",
    "create_identity_provider",
    "create_media_host",
]
