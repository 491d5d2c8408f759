from datetime import datetime
from math import isfinite
from typing import Annotated, NamedTuple

from annotated_types import Ge
from pydantic import BeforeValidator, TypeAdapter

from gpxtrace.models.types import Latitude, Longitude


def _lenient_elevation(v):
    """Elevation is optional: discard values that are not finite numbers."""
    if v is None:
        return None
    try:
        v = float(v)
    except (TypeError, ValueError):
        return None
    return v if isfinite(v) else None


class DecodedPoint(NamedTuple):
    latitude: Latitude
    longitude: Longitude
    altitude: Annotated[float | None, BeforeValidator(_lenient_elevation)]
    timestamp: datetime
    segment: Annotated[int, Ge(0)]


DecodedPointValidator = TypeAdapter(DecodedPoint)
