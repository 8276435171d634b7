"""
Splices parsed single-frame GIFs into one animated GIF89a stream.

Output layout:

    "GIF89a"
    [screen descriptor][global color table][NETSCAPE2.0 loop extension]   (only if the first frame has a table)
    per frame: [graphic control extension][image descriptor][local color table?][image data]
    ";"
"""

from enum import Enum
import logging
import typing as t

from .blocks import ParsedFrame, compare_colortables, parse_frame
from .constants import *
from .constants import EXT_APPLICATION_LABEL, EXT_GRAPHIC_CONTROL_LABEL, EXT_INTRODUCER, TRAILER_LABEL
from .exceptions import AssemblyStateError, InvalidInput

__all__ = (
    "Frame",
    "BuildState",
    "AnimationAssembler",
    "assemble"
)

logger = logging.getLogger(__name__)

HEADER = GifVersion.GIF89a.value


def _word(value: int) -> bytes:
    """
    Encode an integer as a 2 byte little endian GIF word.
    """
    return value.to_bytes(2, "little")


def check_range(name: str, value: int, upper: int) -> int:
    if isinstance(value, Enum):
        value = value.value

    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= upper:
        raise InvalidInput("{} must be an integer in 0..{}, got {!r}".format(name, upper, value))

    return value


class Frame:
    """
    One input frame: an encoded single-frame GIF plus its animation timing.
    """
    def __init__(self, raw: bytes, duration: int = DEFAULT_DURATION,
                 disposal_method: t.Union[int, DisposalMethod] = 0):
        self.raw = raw
        self.duration = check_range("duration", duration, MAX_WORD)
        self.disposal_method = check_range("disposal method", disposal_method, 7)

    def __repr__(self) -> str:
        return "Frame({} bytes, duration={}, disposal_method={})".format(
            len(self.raw), self.duration, self.disposal_method)


class BuildState(Enum):
    EMPTY = 0
    HEADER_WRITTEN = 1
    FRAME_WRITTEN = 2
    FINALIZED = 3


def loop_extension(loop: int) -> bytes:
    """
    NETSCAPE2.0 application extension. A loop count of 0 repeats forever.
    """
    return (bytes([EXT_INTRODUCER, EXT_APPLICATION_LABEL, 0x0B]) + b"NETSCAPE2.0"
            + b"\x03\x01" + _word(loop) + b"\x00")


def graphic_control_extension(duration: int, disposal_method: int) -> bytes:
    """
    Graphic control extension for one frame. The transparent color flag is always set and the transparent
    index is always 0.
    """
    packed = (disposal_method << 2) | 1
    return bytes([EXT_INTRODUCER, EXT_GRAPHIC_CONTROL_LABEL, 0x04, packed]) + _word(duration) + b"\x00\x00"


class AnimationAssembler:
    """
    Writes an animated GIF one block at a time. One assembler holds exactly one build: the output buffer, its
    state and the first frame, whose palette every later frame is compared against.

    EMPTY -> HEADER_WRITTEN -> FRAME_WRITTEN* -> FINALIZED. The only way back is reset().
    """
    def __init__(self):
        self._clear()

    def _clear(self) -> None:
        self.state = BuildState.EMPTY
        self.output = bytearray(HEADER)
        self.first: t.Optional[ParsedFrame] = None

    def reset(self) -> None:
        self._clear()

    def _expect(self, *states: BuildState) -> None:
        if self.state not in states:
            raise AssemblyStateError("assembler is {}, expected one of {}".format(
                self.state.name, ", ".join(s.name for s in states)))

    def write_header(self, first: ParsedFrame, loop: int = 0) -> None:
        """
        Write the screen descriptor, global color table and loop extension of the first frame. None of these
        are written when the first frame has no global color table.
        """
        self._expect(BuildState.EMPTY)
        loop = check_range("loop", loop, MAX_WORD)

        if first.has_global_colortable:
            self.output += first.screen_descriptor
            self.output += first.colortable
            self.output += loop_extension(loop)
        else:
            logger.warning("first frame has no global color table, writing no screen descriptor")

        self.first = first
        self.state = BuildState.HEADER_WRITTEN

    def write_frame(self, parsed: ParsedFrame, duration: int = DEFAULT_DURATION,
                    disposal_method: int = 0) -> None:
        self._expect(BuildState.HEADER_WRITTEN, BuildState.FRAME_WRITTEN)
        duration = check_range("duration", duration, MAX_WORD)
        disposal_method = check_range("disposal method", disposal_method, 7)

        is_first = self.state == BuildState.HEADER_WRITTEN
        descriptor = parsed.image_descriptor
        colortable = b""

        if parsed.local_colortable is not None:
            # the image indexes its own table, it goes along unchanged
            colortable = parsed.local_colortable
        elif not is_first and parsed.has_global_colortable:
            first = self.first
            if (parsed.colortable_size == first.colortable_size
                    and compare_colortables(first.colortable, parsed.colortable,
                                            first.screen_flags.num_colors())):
                logger.debug("frame shares the global color table")
            else:
                # size bits follow the table actually embedded
                size = parsed.colortable_size
                logger.debug("frame gets a local color table of %d colors", 2 << size)
                descriptor = descriptor.with_local_colortable(size)
                colortable = parsed.colortable

        self.output += graphic_control_extension(duration, disposal_method)
        self.output += descriptor.to_bytes()
        self.output += colortable
        self.output += parsed.image_data

        self.state = BuildState.FRAME_WRITTEN

    def finalize(self) -> bytes:
        """
        Write the trailer and return the finished animation.
        """
        self._expect(BuildState.FRAME_WRITTEN)
        self.output.append(TRAILER_LABEL)
        self.state = BuildState.FINALIZED
        return bytes(self.output)


def assemble(frames: t.Sequence[Frame], loop: int = 0,
             assembler: t.Optional[AnimationAssembler] = None) -> bytes:
    """
    Build an animated GIF from already encoded single-frame GIFs. Every frame is parsed before anything is
    written, so a bad frame aborts the build without output.

    A fresh assembler is used unless one in the EMPTY state is passed in.
    """
    if not frames:
        raise InvalidInput("no frames given")

    parsed = [parse_frame(frame.raw, n) for n, frame in enumerate(frames, start=1)]

    if assembler is None:
        assembler = AnimationAssembler()
    assembler.write_header(parsed[0], loop)

    for frame, parsed_frame in zip(frames, parsed):
        assembler.write_frame(parsed_frame, frame.duration, frame.disposal_method)

    output = assembler.finalize()
    logger.debug("assembled %d frames into %d bytes", len(frames), len(output))
    return output
