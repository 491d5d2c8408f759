from typing import Annotated, NewType

from annotated_types import Interval

StorageKey = NewType('StorageKey', str)

Longitude = Annotated[float, Interval(ge=-180, le=180)]
Latitude = Annotated[float, Interval(ge=-90, le=90)]

TraceId = NewType('TraceId', int)
UserId = NewType('UserId', int)
