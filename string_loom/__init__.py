from .errors import InvalidInput
from .loom import pin_layout
from .preprocess import preprocess
from .raster import erase, rasterize, score
from .solver import Chord, solve
from .string_art import StringArt, generate_string_art, thread_image

__all__ = [
    "Chord",
    "InvalidInput",
    "StringArt",
    "erase",
    "generate_string_art",
    "pin_layout",
    "preprocess",
    "rasterize",
    "score",
    "solve",
    "thread_image",
]
