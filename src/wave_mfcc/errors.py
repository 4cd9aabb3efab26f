"""Error types raised by the codec and the feature stages."""


class FormatError(Exception):
    """The WAVE container could not be opened or is not a RIFF file."""


class DimensionMismatch(ValueError):
    """Lengths of vectors passed between pipeline stages do not agree."""
