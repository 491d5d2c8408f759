from gpxtrace.exceptions import Exceptions
from gpxtrace.exceptions06.request_mixin import RequestExceptions06Mixin
from gpxtrace.exceptions06.trace_mixin import TraceExceptions06Mixin


class Exceptions06(
    Exceptions,
    RequestExceptions06Mixin,
    TraceExceptions06Mixin,
): ...
