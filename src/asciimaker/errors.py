class AsciiMakerError(Exception):
    """Base class for errors raised by asciimaker."""


class InvalidInput(AsciiMakerError, ValueError):
    """A sample grid or parameter that cannot be quantized (zero area, non-positive aspect)."""


class EmptyRamp(AsciiMakerError, ValueError):
    """A character ramp with no characters."""


class ImageDecodeError(AsciiMakerError):
    """The image collaborator could not decode its input."""


class RemoteGenerationError(AsciiMakerError):
    """The remote image generation service failed or timed out."""
