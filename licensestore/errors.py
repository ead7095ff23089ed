# --- licensestore/errors.py ---
"""Error kinds surfaced by order submission and the outbound integrations.

Each error carries a ``kind`` string that ends up in the JSON error envelope,
so clients can tell a bad request apart from an infrastructure failure.
"""


class StoreError(Exception):
    kind = "internal-error"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def as_data(self) -> dict:
        return {"kind": self.kind, **self.details}


class InvalidInput(StoreError):
    """Malformed request body. Never retried."""
    kind = "invalid-input"
    status_code = 400


class AuthenticationFailed(StoreError):
    """Credential exchange with an upstream service failed; retry the whole request."""
    kind = "authentication-failed"
    status_code = 500


class BackendUnavailable(StoreError):
    """An upstream call failed or timed out. Resubmitting is safe."""
    kind = "backend-unavailable"
    status_code = 500
