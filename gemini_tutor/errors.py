"""Error taxonomy shared by the sessions, the tool registry and the model service."""


class TutorError(Exception):
    """Base class for every error raised by gemini_tutor."""


class ValidationError(TutorError):
    """User-supplied input was rejected before anything was sent to the model."""


class SchemaError(ValidationError):
    """Tool definitions could not be parsed."""


class StateError(TutorError):
    """The requested action is not allowed in the current interaction phase."""


class ServiceError(TutorError):
    """The model service failed or returned something unusable.

    ``raw_request`` and ``raw_response`` carry whatever was exchanged with the
    model before the failure, so the API log can still show it.
    """

    def __init__(self, message: str, raw_request: dict | None = None, raw_response=None):
        super().__init__(message)
        self.raw_request = raw_request or {}
        self.raw_response = raw_response


class EmptyResponseError(ServiceError):
    """The model returned neither text nor a tool call."""
