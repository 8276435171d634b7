"""
gifanim is a small library for assembling single-frame GIF images into one animated GIF, without a
heavyweight multimedia encoder. Identical palettes are stored once, differing ones become local color tables.

Based on the GIF89a spec, currently hosted here:

https://www.w3.org/Graphics/GIF/spec-gif89a.txt
"""

from .anim import *
from .assembler import *
from .blocks import *
from .codec import *
from .constants import *
from .exceptions import *

__version__ = "0.1.0"
