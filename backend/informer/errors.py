"""
Error taxonomy for The Actual Informer.

Every error carries the HTTP status the API layer reports for it.
"""


class InformerError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(InformerError):
    """A collaborator credential or setting required by the operation is missing."""

    status_code = 503


class UpstreamError(InformerError):
    """A collaborator (news provider, LLM, image or speech API) failed."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class UpstreamRateLimited(UpstreamError):
    """The provider kept answering 429 after all retries."""

    status_code = 503


class NotFound(InformerError):
    status_code = 404


class ValidationError(InformerError):
    """Malformed id, bias or other caller-supplied parameter."""

    status_code = 400


class ArticleBusy(InformerError):
    """Another transformation currently holds the article's processing lock."""

    status_code = 409


class InvalidTransition(InformerError):
    """A processing-status change that would move the article backwards."""

    status_code = 409
