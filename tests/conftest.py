import io

import pytest
from PIL import Image

# LZW data of a 2x2 image whose pixels are all index 0: minimum code size, one sub-block, terminator.
IMAGE_DATA = b"\x02\x03\x04\x00\x05\x00"

CODEC_GCE = b"!\xf9\x04\x01\x00\x00\x00\x00"


def descriptor(flags=0x00, width=2, height=2):
    return (b"," + b"\x00\x00\x00\x00" + width.to_bytes(2, "little") + height.to_bytes(2, "little")
            + bytes([flags]))


def _pad_table(colors, size):
    table = b"".join(bytes(c) for c in colors)
    return table + b"\x00" * (3 * (2 << size) - len(table))


def build_gif(colors=((0x12, 0x34, 0x56), (0xAB, 0xCD, 0xEF)), size=0, gce=True, local=None,
              signature=b"GIF89a", width=2, height=2, extra=b"", global_table=True):
    """
    A single-frame GIF. colors fill the global table (padded with black to 2 << size entries); local, when
    given, is (colors, size) of a local table.
    """
    flags = 0x80 | size if global_table else 0x00
    out = signature + width.to_bytes(2, "little") + height.to_bytes(2, "little") + bytes([flags, 0, 0])

    if global_table:
        out += _pad_table(colors, size)

    out += extra

    if gce:
        out += CODEC_GCE

    if local is None:
        out += descriptor(width=width, height=height)
    else:
        local_colors, local_size = local
        out += descriptor(0x80 | local_size, width, height) + _pad_table(local_colors, local_size)

    return out + IMAGE_DATA + b";"


@pytest.fixture
def image_data():
    return IMAGE_DATA


@pytest.fixture
def make_descriptor():
    return descriptor


@pytest.fixture
def make_gif():
    return build_gif


@pytest.fixture
def solid_png():
    def make(color, size=(4, 4), mode="RGB"):
        buf = io.BytesIO()
        Image.new(mode, size, color).save(buf, format="PNG")
        return buf.getvalue()

    return make
