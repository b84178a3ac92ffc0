from typing import Optional


class RelayError(RuntimeError):
    """Base for failures surfaced to API callers as ``{success: false, error, details}``."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        payload = {"success": False, "error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class MissingInput(RelayError):
    status_code = 400


class OutOfDomain(RelayError):
    status_code = 400

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        super().__init__(
            message
            or (
                "I am designed to assist with health-related queries only. "
                "Please ask questions about health, medicine, wellness, or medical topics."
            ),
            details,
        )


class GenerationFailure(RelayError):
    status_code = 500


class MalformedRoutineOutput(RelayError):
    status_code = 500


class AnswerCountMismatch(RelayError):
    status_code = 400


class MissingUserId(RelayError):
    status_code = 400


class NotFound(RelayError):
    status_code = 404


class ImageProcessingFailure(RelayError):
    status_code = 500


class InvalidUpload(RelayError):
    status_code = 400


class AccessDenied(RelayError):
    status_code = 403


class InternalError(RelayError):
    status_code = 500
