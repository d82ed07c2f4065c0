class GatewayError(Exception):
    """Base class for every failure reported by the gateway."""


class ReadError(GatewayError):
    """A select against the table store failed."""


class WriteError(GatewayError):
    """An insert, update or delete failed or matched no row."""


class NotFoundError(GatewayError):
    """A single-row lookup matched nothing."""


class AuthError(GatewayError):
    """No session, or credentials were rejected."""


class AccessDeniedError(GatewayError):
    """Authenticated, but not allowed to do this."""


class ValidationError(ValueError):
    """
    Raised before a write when form input does not parse.
    `errors` maps field name -> message.
    """

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors
