"""
Constants and enums relating to animated GIF assembly. These are part of the public API.

There aren't actually many enumerations in the GIF format, mainly boolean flags and small integers.
"""

__all__ = (
    "GifVersion",
    "DisposalMethod",
    "DEFAULT_DURATION",
    "MAX_WORD"
)


from enum import Enum


# Frame delay used when the caller supplies none, in 1/100ths of a second.
DEFAULT_DURATION = 10

# Largest value a little endian GIF word can hold. Delays and loop counts are words.
MAX_WORD = 0xFFFF

# Introduces an extension block. The byte after this is the extension label.
EXT_INTRODUCER = 0x21

# Extension labels.
EXT_GRAPHIC_CONTROL_LABEL = 0xF9
EXT_APPLICATION_LABEL = 0xFF

# Introduces a new image.
IMAGE_SEPARATOR = 0x2C

# Terminates a GIF file.
TRAILER_LABEL = 0x3B

# Application identifier of the looping extension. Any source carrying it is animated.
NETSCAPE_IDENTIFIER = b"NETSCAPE"

# Sizes of the fixed parts of a GIF, in bytes.
HEADER_SIZE = 6
SCREEN_DESCRIPTOR_SIZE = 7
IMAGE_DESCRIPTOR_SIZE = 10


class GifVersion(Enum):
    """
    Gif version. In the file this is the three ascii characters after "GIF".
    Since there are only two valid GIF versions, we can just use an Enum.
    """
    GIF87a = b"GIF87a"
    GIF89a = b"GIF89a"

    def __str__(self) -> str:
        return self.value.decode("ascii")

    @classmethod
    def from_signature(cls, signature: bytes) -> "GifVersion":
        """
        Look up the version for a 6 byte signature. Raises ValueError for anything that isn't a GIF.
        """
        return cls(bytes(signature))


class DisposalMethod(Enum):
    """
    Disposal method for animation frames. Tells how to treat the previous frame after it's been displayed.

    See section 23.c.iv, under Graphic Control Extension. The field is three bits wide, values 4-7 are
    undefined but still representable, so callers may pass plain integers in 0..7 as well.
    """
    NONE = 0
    NO_DISPOSE = 1
    RESTORE_BACKGROUND = 2
    RESTORE_PREVIOUS = 3
