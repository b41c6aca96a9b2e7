"""Geodesy utilities for distances and bearings between lon/lat points."""
from __future__ import annotations

import math
from typing import Tuple

from pyproj import Geod

EARTH_RADIUS_M = 6_371_000.0
WGS84_GEOD = Geod(ellps="WGS84")


def great_circle_distance_m(
    lat_a_deg: float,
    lon_a_deg: float,
    lat_b_deg: float,
    lon_b_deg: float,
) -> float:
    """Return haversine distance in metres on a sphere of radius 6 371 km."""
    d_lat = math.radians(lat_b_deg - lat_a_deg)
    d_lon = math.radians(lon_b_deg - lon_a_deg)
    lat_a = math.radians(lat_a_deg)
    lat_b = math.radians(lat_b_deg)

    a = (math.sin(d_lat / 2.0) ** 2) + math.cos(lat_a) * math.cos(lat_b) * (math.sin(d_lon / 2.0) ** 2)
    return EARTH_RADIUS_M * 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def initial_bearing_deg(
    lat_a_deg: float,
    lon_a_deg: float,
    lat_b_deg: float,
    lon_b_deg: float,
) -> float:
    """Return the spherical forward azimuth from A to B.

    Degrees in ``[0, 360)``, clockwise from geographic north (east is 90).
    """
    lat_a = math.radians(lat_a_deg)
    lat_b = math.radians(lat_b_deg)
    d_lon = math.radians(lon_b_deg - lon_a_deg)

    y = math.sin(d_lon) * math.cos(lat_b)
    x = math.cos(lat_a) * math.sin(lat_b) - math.sin(lat_a) * math.cos(lat_b) * math.cos(d_lon)
    bearing = math.degrees(math.atan2(y, x)) % 360.0
    # A tiny negative angle wraps to exactly 360.0 in floating point.
    return 0.0 if bearing >= 360.0 else bearing


def angular_difference_deg(a_deg: float, b_deg: float) -> float:
    """Smallest absolute difference between two compass directions, in ``[0, 180]``."""
    diff = abs((a_deg % 360.0) - (b_deg % 360.0))
    return min(diff, 360.0 - diff)


def ellipsoidal_inverse(
    lat_a_deg: float,
    lon_a_deg: float,
    lat_b_deg: float,
    lon_b_deg: float,
) -> Tuple[float, float]:
    """Solve the inverse problem on the WGS84 ellipsoid.

    Returns ``(forward azimuth in degrees [0, 360), distance in metres)``.
    """
    azimuth, _, distance = WGS84_GEOD.inv(lon_a_deg, lat_a_deg, lon_b_deg, lat_b_deg)
    azimuth %= 360.0
    return (0.0 if azimuth >= 360.0 else azimuth), float(distance)


def ellipsoidal_bearing_deg(lat_a_deg: float, lon_a_deg: float, lat_b_deg: float, lon_b_deg: float) -> float:
    return ellipsoidal_inverse(lat_a_deg, lon_a_deg, lat_b_deg, lon_b_deg)[0]


def ellipsoidal_distance_m(lat_a_deg: float, lon_a_deg: float, lat_b_deg: float, lon_b_deg: float) -> float:
    return ellipsoidal_inverse(lat_a_deg, lon_a_deg, lat_b_deg, lon_b_deg)[1]
