from math import pi

import numpy as np
from numpy.typing import NDArray

from gpxtrace.models.trace_bounds import TraceBounds

# latitude where the projected map becomes square
_MAX_LAT = 85.0511287798


def mercator(
    coords: NDArray[np.floating],
    width: int,
    height: int,
    bounds: TraceBounds | None = None,
) -> NDArray[np.floating]:
    """
    Project (lon, lat) coordinates onto a width x height pixel canvas.

    The projection is fitted to the given bounds, or to the coordinates themselves,
    preserving the aspect ratio and centering the shorter axis.
    """
    xs = coords[:, 0]
    ys = _y_sheet(coords[:, 1])

    if bounds is None:
        min_lon = float(xs.min())
        min_lat = float(ys.min())
        max_lon = float(xs.max())
        max_lat = float(ys.max())
    else:
        min_lon = bounds.min_lon
        max_lon = bounds.max_lon
        min_lat, max_lat = (float(v) for v in _y_sheet(np.array((bounds.min_lat, bounds.max_lat))))

    x_size = max_lon - min_lon
    y_size = max_lat - min_lat

    scale = max(x_size / width, y_size / height)
    half_x_pad = ((width * scale) - x_size) / 2
    half_y_pad = ((height * scale) - y_size) / 2

    min_lon -= half_x_pad
    min_lat -= half_y_pad
    max_lon += half_x_pad
    max_lat += half_y_pad
    x_size = max_lon - min_lon
    y_size = max_lat - min_lat

    x = (
        (xs - min_lon) / (x_size / width)
        if x_size > 0  #
        else np.full(coords.shape[0], width / 2, dtype=np.float64)
    )
    y = (
        height - ((ys - min_lat) / (y_size / height))
        if y_size > 0  #
        else np.full(coords.shape[0], height / 2, dtype=np.float64)
    )
    return np.column_stack((x, y))


def _y_sheet(arr: NDArray[np.floating]) -> NDArray[np.floating]:
    arr = np.clip(arr, -_MAX_LAT, _MAX_LAT)
    return np.degrees(np.log(np.tan((np.radians(arr) / 2) + (pi / 4))))
