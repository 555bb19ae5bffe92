"""
Infrastructure Image Codecs
"""

from .pillow_codec import PillowImageCodec

__all__ = ["PillowImageCodec"]
