"""
Structural parsing of single-frame GIF buffers.

A frame is cut into the pieces the assembler splices back together: the logical screen descriptor, the global
color table, the image descriptor, an optional local color table and the compressed image data. Nothing is
decompressed, the image data is carried through as-is.

Block layout follows the GIF89a spec:

https://www.w3.org/Graphics/GIF/spec-gif89a.txt
"""

import logging
import typing as t

from .constants import *
from .constants import (
    EXT_INTRODUCER,
    HEADER_SIZE,
    IMAGE_DESCRIPTOR_SIZE,
    IMAGE_SEPARATOR,
    NETSCAPE_IDENTIFIER,
    SCREEN_DESCRIPTOR_SIZE,
    TRAILER_LABEL,
)
from .exceptions import AnimatedSourceError, InvalidFrameFormat

__all__ = (
    "RawColortable",
    "ScreenFlags",
    "ImageFlags",
    "ImageDescriptor",
    "ParsedFrame",
    "parse_frame",
    "compare_colortables",
    "colortable_length"
)

logger = logging.getLogger(__name__)

# A color table as it sits in the file: consecutive RGB triplets.
RawColortable = bytes

# Offset of the packed fields byte inside the logical screen descriptor.
SCREEN_FLAGS_OFFSET = 10

# Distance from an extension introducer to its application identifier: introducer, label, block size.
APPLICATION_ID_OFFSET = 3


def colortable_length(size: int) -> int:
    """
    Byte length of a color table with the given size exponent.
    """
    return 3 * (2 << size)


class PackedFields:
    """
    A packed fields byte whose top bit flags a color table and whose low three bits hold the table's size
    exponent. The remaining bits are kept untouched.
    """
    COLORTABLE_FLAG = 0x80
    SIZE_MASK = 0x07

    def __init__(self, value: int):
        self.value = value & 0xFF

    @property
    def has_colortable(self) -> bool:
        return bool(self.value & self.COLORTABLE_FLAG)

    @property
    def colortable_size(self) -> int:
        return self.value & self.SIZE_MASK

    def num_colors(self) -> int:
        return 2 << self.colortable_size

    def __int__(self) -> int:
        return self.value

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.value == other.value

    def __repr__(self) -> str:
        return "{}(0x{:02X})".format(type(self).__name__, self.value)


class ScreenFlags(PackedFields):
    """
    Packed fields of the logical screen descriptor.

    bit 7 global color table flag, bits 4-6 color resolution, bit 3 sort flag, bits 0-2 table size.
    """
    @property
    def color_resolution(self) -> int:
        return (self.value >> 4) & 0x7


class ImageFlags(PackedFields):
    """
    Packed fields of an image descriptor.

    bit 7 local color table flag, bit 6 interlace, bit 5 sort flag, bits 3-4 reserved, bits 0-2 table size.
    """
    @property
    def interlaced(self) -> bool:
        return bool((self.value >> 6) & 0x1)

    def with_local_colortable(self, size: int) -> "ImageFlags":
        """
        Flag a local color table with the given size exponent.
        """
        return ImageFlags(((self.value | self.COLORTABLE_FLAG) & 0xF8) | (size & self.SIZE_MASK))


class ImageDescriptor:
    """
    Model of an image descriptor, separator included. Controls position and size of the image, and local
    color table properties.
    """
    def __init__(self, raw: bytes):
        if len(raw) != IMAGE_DESCRIPTOR_SIZE or raw[0] != IMAGE_SEPARATOR:
            raise InvalidFrameFormat("could not read image descriptor: bad separator or size")

        self.leftpos = int.from_bytes(raw[1:3], "little")
        self.toppos = int.from_bytes(raw[3:5], "little")
        self.width = int.from_bytes(raw[5:7], "little")
        self.height = int.from_bytes(raw[7:9], "little")
        self.flags = ImageFlags(raw[9])

    def with_local_colortable(self, size: int) -> "ImageDescriptor":
        raw = bytearray(self.to_bytes())
        raw[9] = int(self.flags.with_local_colortable(size))
        return ImageDescriptor(bytes(raw))

    def to_bytes(self) -> bytes:
        return (bytes([IMAGE_SEPARATOR])
                + self.leftpos.to_bytes(2, "little")
                + self.toppos.to_bytes(2, "little")
                + self.width.to_bytes(2, "little")
                + self.height.to_bytes(2, "little")
                + bytes([int(self.flags)]))

    def __repr__(self) -> str:
        return "ImageDescriptor({d.width}x{d.height}@({d.leftpos}, {d.toppos}), {d.flags!r})".format(d=self)


class ParsedFrame:
    """
    The blocks of one single-frame GIF. Only lives for the duration of one build.
    """
    def __init__(self,
                 version: GifVersion,
                 screen_descriptor: bytes,
                 colortable: RawColortable,
                 image_descriptor: ImageDescriptor,
                 local_colortable: t.Optional[RawColortable],
                 image_data: bytes):
        self.version = version
        self.screen_descriptor = screen_descriptor
        self.colortable = colortable
        self.image_descriptor = image_descriptor
        self.local_colortable = local_colortable
        self.image_data = image_data

    @property
    def screen_flags(self) -> ScreenFlags:
        return ScreenFlags(self.screen_descriptor[SCREEN_FLAGS_OFFSET - HEADER_SIZE])

    @property
    def has_global_colortable(self) -> bool:
        return self.screen_flags.has_colortable

    @property
    def colortable_size(self) -> int:
        return self.screen_flags.colortable_size


class _FrameStream:
    """
    Internal utility class that walks along a frame buffer. Mirrors a file cursor: position moves forward as
    blocks are consumed.
    """
    def __init__(self, data: bytes, frame_index: int):
        self.data = data
        self.frame_index = frame_index
        self.position = 0

    def _fail(self, msg: str) -> InvalidFrameFormat:
        return InvalidFrameFormat("frame {}: {}".format(self.frame_index, msg))

    def next(self, size: int) -> bytes:
        end = self.position + size
        if end > len(self.data):
            raise self._fail("unexpected end of data at offset {}".format(self.position))

        chunk = self.data[self.position:end]
        self.position = end
        return chunk

    def next_byte(self) -> int:
        return self.next(1)[0]

    def peek_byte(self) -> int:
        if self.position >= len(self.data):
            raise self._fail("unexpected end of data at offset {}".format(self.position))
        return self.data[self.position]

    def consume_header(self) -> GifVersion:
        """
        Consume the GIF header, and return the GIF revision.
        """
        signature = self.next(HEADER_SIZE)

        try:
            return GifVersion.from_signature(signature)
        except ValueError:
            raise self._fail("bad signature {!r}".format(signature)) from None

    def consume_color_table(self, size: int) -> RawColortable:
        return self.next(colortable_length(size))

    def skip_data(self) -> None:
        """
        Skip data sub blocks. Each starts with a size byte and holds at most 255 bytes of data. A zero-length
        block terminates the series.
        """
        data_size = self.next_byte()
        while data_size != 0:
            self.next(data_size)
            data_size = self.next_byte()

    def skip_extension(self) -> None:
        """
        Skip an extension block: introducer, label, data sub-blocks, terminator.
        """
        self.position += 2
        self.skip_data()


def _check_not_animated(data: bytes, start: int, frame_index: int) -> None:
    """
    Reject buffers carrying a NETSCAPE application extension. Every introducer byte after start is checked,
    since the image data isn't walked here.
    """
    pos = data.find(bytes([EXT_INTRODUCER]), start)
    while pos != -1:
        id_start = pos + APPLICATION_ID_OFFSET
        if data[id_start:id_start + len(NETSCAPE_IDENTIFIER)] == NETSCAPE_IDENTIFIER:
            raise AnimatedSourceError(frame_index)
        pos = data.find(bytes([EXT_INTRODUCER]), pos + 1)


def parse_frame(data: bytes, frame_index: int = 1) -> ParsedFrame:
    """
    Parse a single-frame GIF into its blocks. frame_index is 1-based and only used for error reporting.
    """
    data = bytes(data)
    stream = _FrameStream(data, frame_index)

    version = stream.consume_header()
    screen_descriptor = stream.next(SCREEN_DESCRIPTOR_SIZE)
    flags = ScreenFlags(data[SCREEN_FLAGS_OFFSET])

    colortable = b""
    if flags.has_colortable:
        colortable = stream.consume_color_table(flags.colortable_size)

    _check_not_animated(data, stream.position, frame_index)

    if data[-1] != TRAILER_LABEL:
        raise stream._fail("missing trailer")

    # everything from here to the trailer belongs to the image
    stream.data = data[:-1]

    while stream.peek_byte() == EXT_INTRODUCER:
        stream.skip_extension()

    image_descriptor = ImageDescriptor(stream.next(IMAGE_DESCRIPTOR_SIZE))

    local_colortable = None
    if image_descriptor.flags.has_colortable:
        local_colortable = stream.consume_color_table(image_descriptor.flags.colortable_size)

    image_data = stream.data[stream.position:]
    if not image_data:
        raise stream._fail("no image data")

    logger.debug("parsed frame %d: %s, color resolution %d, global colortable %s, %r, interlaced %s, "
                 "local colortable %s, %d data bytes",
                 frame_index, version, flags.color_resolution,
                 "{} colors".format(flags.num_colors()) if flags.has_colortable else "absent",
                 image_descriptor, image_descriptor.flags.interlaced,
                 "present" if local_colortable is not None else "absent", len(image_data))

    return ParsedFrame(version, screen_descriptor, colortable, image_descriptor, local_colortable, image_data)


def compare_colortables(table_a: RawColortable, table_b: RawColortable, entries: int) -> bool:
    """
    Compare the first `entries` RGB triplets of two color tables. Anything past that is not looked at.
    """
    for i in range(entries):
        if table_a[3 * i:3 * i + 3] != table_b[3 * i:3 * i + 3]:
            return False

    return True
