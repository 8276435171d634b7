"""
Bitmap codec: turns arbitrary image sources into canonical single-frame GIF buffers.

Sources may be Pillow images, raw encoded bytes, file paths or URLs. Every source is scaled to the canvas size
and re-encoded with a 256 color palette whose index 0 is reserved for transparency, matching the graphic
control extension the assembler writes for every frame.
"""

import io
import logging
import os
import re
import struct
import typing as t

from PIL import Image, UnidentifiedImageError
import requests

from .constants import MAX_WORD
from .exceptions import AnimatedSourceError, InvalidInput, UnreadableSource, UnsupportedSourceFormat

__all__ = (
    "Source",
    "BitmapCodec",
    "TRANSPARENT_INDEX"
)

logger = logging.getLogger(__name__)

Source = t.Union[Image.Image, bytes, bytearray, memoryview, str, "os.PathLike[str]"]

# Palette slot written as transparent. Everything else is quantized into the remaining 255 slots.
TRANSPARENT_INDEX = 0
TRANSPARENT_COLOR = (0, 0, 0)
QUANTIZE_COLORS = 255

URL_PATTERN = re.compile(
    r"\b(?:(?:https?|ftp)://|www\.)[-a-z0-9+&@#/%?=~_|!:,.;]*[-a-z0-9+&@#/%=~_|]",
    re.IGNORECASE)


def is_url(source: str) -> bool:
    return URL_PATTERN.match(source) is not None


class BitmapCodec:
    """
    Loads image sources and encodes them as single-frame GIFs.

    allow_urls controls whether string sources that look like URLs are fetched. url_timeout is in seconds.
    """
    def __init__(self, allow_urls: bool = True, url_timeout: float = 30):
        self.allow_urls = allow_urls
        self.url_timeout = url_timeout

    def read_bytes(self, source: t.Union[str, "os.PathLike[str]"], index: int) -> bytes:
        """
        Read the encoded bytes behind a path or URL.
        """
        path = os.fspath(source)

        if os.path.isfile(path):
            try:
                with open(path, "rb") as f:
                    return f.read()
            except OSError as e:
                raise UnreadableSource("{}: cannot read {}: {}".format(index, path, e)) from e

        if isinstance(source, str) and is_url(source):
            if not self.allow_urls:
                raise UnreadableSource("{}: loading from URLs is disabled".format(index))

            url = source if "://" in source else "http://" + source
            logger.debug("fetching frame %d from %s", index, url)
            try:
                resp = requests.get(url, timeout=self.url_timeout)
                resp.raise_for_status()
            except requests.RequestException as e:
                raise UnreadableSource("{}: failed to fetch {}: {}".format(index, url, e)) from e

            return resp.content

        raise UnreadableSource("{}: failed to load or invalid image: {!r}".format(index, path[:200]))

    def load(self, source: Source, index: int) -> Image.Image:
        """
        Decode a source into a Pillow image. index is the 1-based position of the source, used in errors.
        """
        if isinstance(source, Image.Image):
            img = source
        else:
            img = self._decode(source, index)

        if getattr(img, "is_animated", False):
            raise AnimatedSourceError(index)

        return img

    def _decode(self, source: Source, index: int) -> Image.Image:
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
        elif isinstance(source, (str, os.PathLike)):
            data = self.read_bytes(source, index)
        else:
            raise InvalidInput(
                "Only Pillow images, file paths, URLs or binary image data are accepted, got {}".format(
                    type(source).__name__))

        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise UnsupportedSourceFormat("{}: source does not decode to an image: {}".format(index, e)) from e

        return img

    def encode(self, img: Image.Image, size: t.Tuple[int, int]) -> bytes:
        """
        Scale an image to size and encode it as a single-frame GIF. Fully transparent pixels map to the
        reserved transparent index.
        """
        rgba = img.convert("RGBA")
        if rgba.size != size:
            rgba = rgba.resize(size)

        quantized = rgba.convert("RGB").quantize(colors=QUANTIZE_COLORS)
        palette = list(quantized.getpalette()[:3 * QUANTIZE_COLORS])
        palette += [0] * (3 * QUANTIZE_COLORS - len(palette))

        alpha = rgba.getchannel("A").tobytes()
        indices = bytes(TRANSPARENT_INDEX if a == 0 else i + 1
                        for i, a in zip(quantized.tobytes(), alpha))

        frame = Image.frombytes("P", size, indices)
        frame.putpalette(list(TRANSPARENT_COLOR) + palette)

        out = io.BytesIO()
        try:
            frame.save(out, format="GIF", transparency=TRANSPARENT_INDEX, optimize=False)
        except (OSError, ValueError, struct.error) as e:
            raise UnsupportedSourceFormat("re-encode to GIF failed: {}".format(e)) from e

        return out.getvalue()

    def normalize(self, source: Source, index: int,
                  size: t.Optional[t.Tuple[t.Optional[int], t.Optional[int]]] = None
                  ) -> t.Tuple[bytes, t.Tuple[int, int]]:
        """
        Load and encode one source. Missing dimensions in size are taken from the source itself. Returns the
        GIF bytes and the size actually used.
        """
        img = self.load(source, index)

        width, height = size if size is not None else (None, None)
        canvas = (width if width is not None else img.width,
                  height if height is not None else img.height)

        if canvas[0] <= 0 or canvas[1] <= 0:
            raise InvalidInput("canvas size must be positive, got {}x{}".format(*canvas))

        if canvas[0] > MAX_WORD or canvas[1] > MAX_WORD:
            raise InvalidInput("canvas size must fit in {} pixels per side, got {}x{}".format(MAX_WORD, *canvas))

        data = self.encode(img, canvas)
        logger.debug("normalized frame %d: %dx%d source to %dx%d, %d bytes",
                     index, img.width, img.height, canvas[0], canvas[1], len(data))
        return data, canvas
