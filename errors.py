class ChowLiuError(Exception):
    """Base class for every error raised while learning or loading a Chow-Liu tree."""


class DataShapeError(ChowLiuError, ValueError):
    """Training data is malformed: wrong shapes, non-binary values, bad weights."""


class FormatError(ChowLiuError, ValueError):
    """A serialized tree could not be parsed."""

    def __init__(self, message: str, line_no: int | None = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class RootPolicyError(ChowLiuError, ValueError):
    """Unknown rooting policy."""
