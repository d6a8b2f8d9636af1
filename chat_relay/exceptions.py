class ChatRelayError(Exception):
    """Base error rendered as {"error": ..., "details": ...} with its own status code."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, details: str):
        super().__init__(details)
        self.details = details


class ValidationFailure(ChatRelayError):
    status_code = 400
    error = "Missing required parameters"


class InvalidRequestBody(ValidationFailure):
    error = "Invalid request body"


class UpstreamFailure(ChatRelayError):
    status_code = 500
    error = "Unable to get a reply"


class UpstreamTimeout(UpstreamFailure):
    status_code = 504


class StoreFailure(Exception):
    """Supabase read failed; only surfaced by the connectivity check."""
