class WebhookError(Exception):
    """Base class for every failure the webhook pipeline reports."""


class VerificationError(WebhookError):
    pass


class ConfigurationError(VerificationError):
    pass


class MissingHeaderError(VerificationError):
    pass


class MalformedHeaderError(VerificationError):
    pass


class SignatureInvalidError(VerificationError):
    pass


class StaleRequestError(VerificationError):
    pass


class DecodeError(WebhookError):
    pass


class InvalidUserError(DecodeError):
    """A user payload that cannot be keyed by an external id."""


class StoreError(WebhookError):
    pass
