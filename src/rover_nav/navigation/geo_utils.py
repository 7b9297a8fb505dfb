# geo_utils.py
# Spherical-Earth helpers for the simulated pose and the progress check.
# Angles in degrees, distances in metres; nothing here touches state.

import math


EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    radius_m: float = EARTH_RADIUS_M,
) -> float:
    """
    Great-circle distance between (lat1, lon1) and (lat2, lon2).

    Returns:
        Metres along the surface of a sphere of radius_m.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    half_dphi = math.radians(lat2 - lat1) / 2
    half_dlam = math.radians(lon2 - lon1) / 2
    h = math.sin(half_dphi) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(half_dlam) ** 2
    return 2 * radius_m * math.asin(min(1.0, math.sqrt(h)))


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial compass bearing from the first point toward the second, in [0, 360)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlam = math.radians(lon2 - lon1)
    east = math.sin(dlam) * math.cos(phi2)
    north = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlam)
    return normalize_bearing(math.degrees(math.atan2(east, north)))


def destination_point(
    lat: float,
    lon: float,
    bearing_deg: float,
    distance_m: float,
    radius_m: float = EARTH_RADIUS_M,
) -> tuple:
    """
    Point reached by travelling distance_m along bearing_deg on a sphere.

    Args:
        lat, lon:    Origin in decimal degrees.
        bearing_deg: Initial bearing in degrees.
        distance_m:  Distance to travel in metres.
        radius_m:    Sphere radius.

    Returns:
        (lat, lon) of the destination in decimal degrees.
    """
    angular = distance_m / radius_m
    theta = math.radians(bearing_deg)
    rlat1 = math.radians(lat)
    rlon1 = math.radians(lon)

    rlat2 = math.asin(
        math.sin(rlat1) * math.cos(angular)
        + math.cos(rlat1) * math.sin(angular) * math.cos(theta)
    )
    rlon2 = rlon1 + math.atan2(
        math.sin(theta) * math.sin(angular) * math.cos(rlat1),
        math.cos(angular) - math.sin(rlat1) * math.sin(rlat2),
    )
    # Wrap longitude back into [-180, 180)
    lon2 = (math.degrees(rlon2) + 540) % 360 - 180
    return math.degrees(rlat2), lon2


def normalize_bearing(bearing_deg: float) -> float:
    """Fold any angle into [0, 360)."""
    result = bearing_deg % 360.0
    # -1e-15 % 360 rounds to 360.0 in floating point
    return 0.0 if result >= 360.0 else result

