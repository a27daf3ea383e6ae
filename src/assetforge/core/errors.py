"""Error types for Asset Forge.

Every failure raised by the core belongs to one hierarchy rooted at
:class:`AssetForgeError`, so callers can tell the cases apart:

- :class:`InputValidationError`: bad user input, caught before any network call.
- :class:`MissingCredentialError`: no API credential at startup.
- :class:`TransportError`: the call to the hosted service itself failed.
- :class:`GenerationFailedError`: the service answered but returned no usable
  image or text (typically a refusal).
- :class:`MalformedResponseError`: a structured (JSON) request came back in
  a shape that does not match the contract.

Messages are intended to be displayed directly to the user.
"""


class AssetForgeError(Exception):
    """Base class for all Asset Forge errors."""

    code = "error"


class InputValidationError(AssetForgeError):
    """User-friendly validation error.

    Raised when user input fails validation. No request is sent.
    """

    code = "invalid_input"


class MissingCredentialError(AssetForgeError):
    """The generative service credential is absent."""

    code = "missing_credential"


class TransportError(AssetForgeError):
    """The hosted service could not be reached or rejected the call."""

    code = "transport"


class GenerationFailedError(AssetForgeError):
    """The service returned no usable payload (e.g. the model declined)."""

    code = "generation_failed"


class MalformedResponseError(AssetForgeError):
    """A structured response failed to parse or is missing required keys."""

    code = "malformed_response"

    def __init__(self, message: str, raw_text: str | None = None) -> None:
        super().__init__(message)
        self.raw_text = raw_text
