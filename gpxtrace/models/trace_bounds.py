from typing import NamedTuple


class TraceBounds(NamedTuple):
    """Bounding box of the stored points of a trace, in degrees."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float
