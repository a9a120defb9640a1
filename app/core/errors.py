"""
Error kinds raised by the media service.

Collaborator failures are split from timeouts so callers can tell a slow
OCR/transcription/provider call apart from one that answered badly.
"""


class MediaServiceError(Exception):
    """Base class for every error raised on purpose by this service."""


class CollaboratorError(MediaServiceError):
    """An external extraction service or process failed."""


class CollaboratorTimeout(CollaboratorError):
    """An external call did not answer within its configured timeout."""

    def __init__(self, target: str, timeout: float):
        super().__init__(f"{target} timed out after {timeout:g}s")
        self.target = target
        self.timeout = timeout


class ProviderError(MediaServiceError):
    """A language-model provider returned an error."""


class ProviderNotConfigured(ProviderError):
    """The provider's API key is missing."""


class UnknownProviderError(MediaServiceError):
    def __init__(self, selector: str):
        super().__init__(f"Unknown model selected: {selector}")
        self.selector = selector


class VoiceRequestError(MediaServiceError):
    """Client-side failure of a voice upload, answered with a 4xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
