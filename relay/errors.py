class RelayError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code = 400
    detail = "bad request"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail is not None:
            self.detail = detail


class AuthFailure(RelayError):
    status_code = 401
    detail = "invalid auth"


class InvalidToken(AuthFailure):
    """Missing, malformed, badly signed or expired bearer token."""


class SecretMismatch(AuthFailure):
    status_code = 403
    detail = "invalid secret"


class RecipientNotFound(RelayError):
    status_code = 404
    detail = "recipient not found"
