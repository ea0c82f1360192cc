"""
Geodesic bounding-box derivation.

Projects the northwest and southeast corners of a query box out from a
center point using the great-circle direct formula on a spherical Earth
(see http://edwilliams.org/avform147.htm). West longitudes are negative.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict

from airpoll.errors import GeometryError, InvalidBoundsError

logger = logging.getLogger(__name__)

KM_PER_NM = 1.852
NW_BEARING_DEG = -45.0
SE_BEARING_DEG = 135.0


def _lat_valid(lat: float) -> bool:
    return -90.0 <= lat <= 90.0


def _lng_valid(lng: float) -> bool:
    return -180.0 <= lng <= 180.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in degrees."""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not _lat_valid(self.latitude):
            raise GeometryError(f"latitude {self.latitude} out of range [-90, 90]")
        if not _lng_valid(self.longitude):
            raise GeometryError(f"longitude {self.longitude} out of range [-180, 180]")


@dataclass(frozen=True)
class Bounds:
    """Lat/lon rectangle described by its northwest and southeast corners."""
    nwlng: float
    nwlat: float
    selng: float
    selat: float

    def __post_init__(self):
        if not _lng_valid(self.nwlng):
            raise InvalidBoundsError("nwlng out of bounds")
        if not _lat_valid(self.nwlat):
            raise InvalidBoundsError("nwlat out of bounds")
        if not _lng_valid(self.selng):
            raise InvalidBoundsError("selng out of bounds")
        if not _lat_valid(self.selat):
            raise InvalidBoundsError("selat out of bounds")
        if self.nwlat < self.selat:
            raise InvalidBoundsError("selat must be less than nwlat")
        if self.selng < self.nwlng:
            raise InvalidBoundsError("nwlng must be less than selng")

    def to_params(self) -> Dict[str, str]:
        """Render the edges as sensor API request parameters."""
        return {
            "nwlng": f"{self.nwlng:.6f}",
            "nwlat": f"{self.nwlat:.6f}",
            "selng": f"{self.selng:.6f}",
            "selat": f"{self.selat:.6f}",
        }

    def url_string(self) -> str:
        return (
            f"nwlng={self.nwlng:3.5f}&nwlat={self.nwlat:2.5f}"
            f"&selng={self.selng:3.5f}&selat={self.selat:2.5f}"
        )


def km_to_nm(km: float) -> float:
    return km / KM_PER_NM


def nm_to_km(nm: float) -> float:
    return nm * KM_PER_NM


def _distance_km_to_radians(distance_km: float) -> float:
    # One nautical mile is one arc-minute of a great circle
    return (math.pi / (180.0 * 60.0)) * km_to_nm(distance_km)


def _normalize_lon(lon_rad: float) -> float:
    """Wrap a longitude in radians into (-pi, pi]."""
    lon = (lon_rad + math.pi) % (2.0 * math.pi) - math.pi
    if lon == -math.pi:
        return math.pi
    return lon


def point_from_radial(origin: GeoPoint, distance_km: float, bearing_rad: float) -> GeoPoint:
    """
    Find the point distance_km out from origin along bearing_rad.

    Args:
        origin: Starting point in degrees.
        distance_km: Great-circle distance to travel.
        bearing_rad: Initial course in radians, 0 = true north, clockwise positive.

    Returns:
        The destination GeoPoint in degrees.
    """
    lat1 = math.radians(origin.latitude)
    lon1 = math.radians(origin.longitude)
    d = _distance_km_to_radians(distance_km)

    sin_lat = math.sin(lat1) * math.cos(d) + math.cos(lat1) * math.sin(d) * math.cos(bearing_rad)
    lat = math.asin(max(-1.0, min(1.0, sin_lat)))
    dlon = math.atan2(
        math.sin(bearing_rad) * math.sin(d) * math.cos(lat1),
        math.cos(d) - math.sin(lat1) * math.sin(lat),
    )
    lon = _normalize_lon(lon1 + dlon)
    return GeoPoint(latitude=math.degrees(lat), longitude=math.degrees(lon))


def compute_bounds(center: GeoPoint, radius_km: float) -> Bounds:
    """
    Build the query box whose corners lie radius_km from center.

    The northwest corner is projected on a -45 degree bearing and the
    southeast corner on 135 degrees.

    Raises:
        InvalidBoundsError: If the projected corners do not form a valid box,
            e.g. when the radius wraps across a pole or the antimeridian.
    """
    nw = point_from_radial(center, radius_km, math.radians(NW_BEARING_DEG))
    se = point_from_radial(center, radius_km, math.radians(SE_BEARING_DEG))
    bounds = Bounds(
        nwlng=nw.longitude,
        nwlat=nw.latitude,
        selng=se.longitude,
        selat=se.latitude,
    )
    logger.debug("Bounds for %s radius=%.3fkm: %s", center, radius_km, bounds.url_string())
    return bounds
