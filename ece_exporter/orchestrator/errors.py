"""
Orchestrator Error Module

Failures raised while talking to the orchestrator API. Every failure is
terminal for the current scrape; nothing here is retried.
"""

import json


class OrchestratorError(Exception):
    """Base class for all failures surfaced by the orchestrator client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_json(self) -> str:
        return json.dumps({"error": self.message})

    def __str__(self) -> str:
        return self.to_json()


class Unauthorized(OrchestratorError):
    def __init__(self):
        super().__init__("Cannot get config: Unauthorized")


class Forbidden(OrchestratorError):
    def __init__(self):
        super().__init__("Cannot get config: Forbidden")


class NotFound(OrchestratorError):
    def __init__(self):
        super().__init__("Cannot get config: Not found")


class UnknownStatus(OrchestratorError):
    """Raised for any status code outside 200/401/403/404."""

    def __init__(self, status_code: int):
        super().__init__(f"Caught bad status code: {status_code}")
        self.status_code = status_code


class TransportError(OrchestratorError):
    """Connection refused, timeout, TLS failure or a truncated stream."""

    def __init__(self, cause: Exception):
        super().__init__(str(cause))
        self.cause = cause


class DecodeError(OrchestratorError):
    """The response body did not match the expected JSON shape."""

    def __init__(self, cause):
        super().__init__(str(cause))
        self.cause = cause
