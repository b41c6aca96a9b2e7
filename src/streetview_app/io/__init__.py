"""Input helpers for vector feature sources and coordinate-named panorama images."""

from .feature_reader import read_line_parts, read_point_coordinates
from .image_binder import ImageBinder, ImageCandidate, parse_image_coordinate

__all__ = [
    "ImageBinder",
    "ImageCandidate",
    "parse_image_coordinate",
    "read_line_parts",
    "read_point_coordinates",
]
