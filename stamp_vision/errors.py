"""Error taxonomy for the stamp pipeline.

Input errors come from caller data and carry a message that names the
violated constraint. ``InternalInvariantViolation`` marks a wiring bug.
"""

GENERIC_FAILURE_MESSAGE = "Processing failed, please retry."


class StampVisionError(Exception):
    user_facing = False


class UnsupportedFormatError(StampVisionError):
    user_facing = True


class ImageTooLargeError(StampVisionError):
    user_facing = True

    def __init__(self, width: int, height: int, max_pixels: int):
        self.width = width
        self.height = height
        self.max_pixels = max_pixels
        super().__init__(
            f"Image is {width}x{height} ({width * height} pixels); "
            f"the limit is {max_pixels} pixels"
        )


class EmptyCompositeError(StampVisionError):
    user_facing = True

    def __init__(self, message: str = "A composite needs at least one layer"):
        super().__init__(message)


class InternalInvariantViolation(StampVisionError):
    pass


def user_message(exc: BaseException) -> str:
    """Text to show at the caller boundary."""
    if isinstance(exc, StampVisionError) and exc.user_facing:
        return str(exc)
    return GENERIC_FAILURE_MESSAGE
