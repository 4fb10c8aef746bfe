# errors.py - failures surfaced to the HTTP caller


class AnalysisError(Exception):
    """Base error: carries the HTTP status and the fixed public message."""

    status_code = 500
    public_message = "Failed to analyze sentence"

    def __init__(self, detail: str = "", public_message: str = None):
        super().__init__(detail or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message

    def to_response(self):
        return {"error": self.public_message}, self.status_code


class InvalidInput(AnalysisError):
    """Malformed request body."""

    status_code = 400
    public_message = "Invalid sentence provided"


class ConfigurationMissing(AnalysisError):
    """The analyzer credential is not configured on the server."""

    status_code = 500

    def __init__(self, key_env: str):
        super().__init__(public_message=f"{key_env} not configured")
        self.key_env = key_env


class UpstreamFailure(AnalysisError):
    """The external model errored or returned no conforming payload."""

    status_code = 500
    public_message = "Failed to analyze sentence"
