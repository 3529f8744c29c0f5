"""Exception taxonomy for recognition and layout errors.

Distinguishes between per-file failures (the input is skipped), per-page
failures (the page is skipped) and informational conditions (nothing to do).
"""


class VocrError(Exception):
    """Base class for vocr errors."""

    pass


class EmptyInput(VocrError):
    """No text was recognized on a page.

    Not an error: callers log it and move on.
    """

    pass


class RecognitionError(VocrError):
    """The recognition engine failed outright on a page.

    Examples: engine not installed, bad language pack, timeout.
    """

    pass


class RasterizationError(VocrError):
    """A PDF or one of its pages could not be rendered to an image."""

    pass


class UnsupportedInputError(VocrError):
    """The input is neither a readable image nor a PDF."""

    pass


# External exceptions that mean "this input cannot be read"
UNREADABLE_INPUT_ERRORS = (
    FileNotFoundError,
    PermissionError,
    IsADirectoryError,
    ValueError,
)
