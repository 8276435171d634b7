"""
Errors raised while building an animation. Every one of them aborts the build, no partial output is kept.
"""

__all__ = (
    "GifAnimException",
    "InvalidInput",
    "UnreadableSource",
    "UnsupportedSourceFormat",
    "AnimatedSourceError",
    "InvalidFrameFormat",
    "AssemblyStateError"
)


class GifAnimException(Exception):
    """
    Base class of all gifanim errors.
    """
    pass


class InvalidInput(GifAnimException, ValueError):
    """
    Raised when the frame list is empty or not iterable, or when timing, loop or disposal values are out of range.
    """
    pass


class UnreadableSource(GifAnimException):
    """
    Raised when a path or URL can't be read, or URL loading is disabled.
    """
    pass


class UnsupportedSourceFormat(GifAnimException):
    """
    Raised when source bytes don't decode to an image, or the image can't be encoded as a GIF.
    """
    pass


class AnimatedSourceError(GifAnimException):
    """
    Raised when a source is itself an animated GIF. frame_index is 1-based.
    """
    def __init__(self, frame_index: int):
        super().__init__("Cannot make animation from animated GIF ({} source).".format(frame_index))
        self.frame_index = frame_index


class InvalidFrameFormat(GifAnimException):
    """
    Raised on structural errors parsing a single-frame GIF: bad signature, truncation, misplaced blocks.
    """
    pass


class AssemblyStateError(GifAnimException):
    """
    Raised when the assembler is driven out of order, e.g. writing a frame before the header.
    """
    pass
