"""Exception hierarchy for media_studio."""


class MediaStudioError(Exception):
    """Base exception for all media studio errors."""


class ConfigurationError(MediaStudioError):
    """Required provider credentials are missing."""


class AuthenticationError(MediaStudioError):
    """Bearer token could not be verified."""


class UploadError(MediaStudioError):
    """Uploading bytes to the media host failed."""


class ProviderError(MediaStudioError):
    """Remote AI endpoint returned a non-success response."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class VisionRequestError(MediaStudioError):
    """AI Vision request body is missing or malformed."""


class DocumentValidationError(MediaStudioError):
    """Uploaded document is too large or has an unsupported extension."""


class DocumentNotFoundError(MediaStudioError):
    """No document row matches the storage id."""
