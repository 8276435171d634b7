"""
AnimGif, the public builder. Takes image sources and timings, returns an animated GIF.
"""

from collections.abc import Iterable
import logging
import os
import typing as t

from .assembler import AnimationAssembler, BuildState, Frame, assemble, check_range
from .codec import BitmapCodec, Source
from .constants import *
from .exceptions import InvalidInput

__all__ = (
    "AnimGif",
    "pad_durations",
    "list_frame_dir"
)

logger = logging.getLogger(__name__)

Durations = t.Union[int, t.Sequence[int], None]


def pad_durations(durations: Durations, count: int) -> t.List[int]:
    """
    Produce one duration per frame. A scalar applies to every frame, a short list is padded with its last
    element.
    """
    if durations is None:
        return [DEFAULT_DURATION] * count

    if isinstance(durations, (str, bytes)) or not isinstance(durations, Iterable):
        return [check_range("duration", durations, MAX_WORD)] * count

    durations = list(durations)
    if not durations:
        durations = [DEFAULT_DURATION]

    while len(durations) < count:
        durations.append(durations[-1])

    return durations


def list_frame_dir(path: t.Union[str, "os.PathLike[str]"]) -> t.List[str]:
    """
    The non-hidden entries of a directory, in ascending name order.
    """
    return [os.path.join(path, name) for name in sorted(os.listdir(path)) if not name.startswith(".")]


class AnimGif:
    """
    Create an animated GIF from multiple images.

    A builder holds one build at a time and is not safe to share between threads. Use one per concurrent build.
    """
    def __init__(self, allow_urls: bool = True, url_timeout: float = 30):
        self.codec = BitmapCodec(allow_urls=allow_urls, url_timeout=url_timeout)
        self.canvas_width: t.Optional[int] = None
        self.canvas_height: t.Optional[int] = None
        self._assembler = AnimationAssembler()
        self._gif = b""

    def set_canvas_width(self, width: int) -> "AnimGif":
        """
        Set the created gif's width. If this isn't set, the width of the first frame is used.
        """
        self.canvas_width = width
        return self

    def set_canvas_height(self, height: int) -> "AnimGif":
        """
        Set the created gif's height. If this isn't set, the height of the first frame is used.
        """
        self.canvas_height = height
        return self

    def _frame_sources(self, frames) -> t.List[Source]:
        if isinstance(frames, (str, os.PathLike)) and os.path.isdir(frames):
            frames = list_frame_dir(frames)

        if isinstance(frames, (str, bytes, bytearray, memoryview)):
            raise InvalidInput("frames must be a sequence of sources or a directory")

        try:
            frames = list(frames)
        except TypeError:
            raise InvalidInput("frames must be a sequence of sources or a directory") from None

        if not frames:
            raise InvalidInput("no frames given")

        return frames

    def create(self,
               frames: t.Union[t.Iterable[Source], str, "os.PathLike[str]"],
               durations: Durations = DEFAULT_DURATION,
               loop: int = 0,
               disposal_methods: t.Optional[t.Sequence[t.Union[int, DisposalMethod]]] = None) -> bytes:
        """
        Create an animated GIF from source images.

        frames can be a directory path, or a sequence of file paths, URLs, binary image data or Pillow images.
        durations are in 1/100s, either one value for all frames or a list padded with its last value.
        loop is the number of repeats, 0 loops forever. Negative values are treated as 0.
        disposal_methods holds one value per frame in 0..7, frames without one use 0.

        On failure the previously built animation, if any, is kept and the error propagates.
        """
        sources = self._frame_sources(frames)
        durations = pad_durations(durations, len(sources))
        disposal_methods = list(disposal_methods or [])
        if isinstance(loop, int) and loop < 0:
            loop = 0
        loop = check_range("loop", loop, MAX_WORD)

        size = (self.canvas_width, self.canvas_height)
        timed = []
        for n, source in enumerate(sources):
            raw, size = self.codec.normalize(source, n + 1, size)
            disposal = disposal_methods[n] if n < len(disposal_methods) else DisposalMethod.NONE
            timed.append(Frame(raw, durations[n], disposal))

        # a failed build must not leave a half written assembler behind
        assembler = AnimationAssembler()
        self._gif = assemble(timed, loop, assembler)
        self._assembler = assembler

        logger.info("created animation: %d frames, %dx%d, %d bytes", len(sources), size[0], size[1], len(self._gif))
        return self._gif

    @property
    def state(self) -> BuildState:
        return self._assembler.state

    def get(self) -> bytes:
        """
        The resulting GIF image binary. Empty until create() succeeds.
        """
        return self._gif

    def save(self, path: t.Union[str, "os.PathLike[str]"]) -> int:
        """
        Save the resulting GIF to a file. Returns the number of bytes written.
        """
        with open(path, "wb") as f:
            return f.write(self.get())

    def reset(self) -> None:
        """
        Drop the built animation and return to the initial, empty state.
        """
        self._assembler = AnimationAssembler()
        self._gif = b""
