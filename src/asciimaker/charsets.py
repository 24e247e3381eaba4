import logging

from asciimaker.errors import EmptyRamp

logger = logging.getLogger(__name__)

# Ramps run from least ink (index 0) to densest glyph (index -1)
RAMPS = {
    "blocks": " .:-=+*#%@",
    "detailed": " .'`\",:;Il!i><~+_-?][}{1)(|\\/*tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$",
    "smooth": " .'`\",:;~-_=+*#%@",
    "heavy": " ░▒▓█",
    "sharp": " .,:;!ilI|/\\tfxjrvnczXYUJCLQ0OZmwqpdbkhao#MW&8%B@$",
    "symbols": " .'`^\"~,.:;_-+=*|/\\()[]{}<>!?%$#@&£€¥§°•·=÷×|~'\"-+_<>/\\",
    "binary": " 01",
}

DEFAULT_RAMP = "detailed"


def get_ramp(name: str) -> str:
    """Look up a named ramp, falling back to the default for unknown names."""
    ramp = RAMPS.get(name)
    if ramp is None:
        logger.debug("Unknown ramp %r, using %r", name, DEFAULT_RAMP)
        return RAMPS[DEFAULT_RAMP]
    return ramp


def validate_ramp(ramp: str, strict: bool = False) -> str:
    """Return a usable ramp.

    An empty ramp raises EmptyRamp when strict, otherwise it is replaced by the
    default ramp so a render still succeeds.
    """
    if ramp:
        return ramp
    if strict:
        raise EmptyRamp("Ramp must contain at least one character")
    logger.warning("Empty ramp supplied, falling back to %r", DEFAULT_RAMP)
    return RAMPS[DEFAULT_RAMP]
