from gpxtrace.exceptions.request_mixin import RequestExceptionsMixin
from gpxtrace.exceptions.trace_mixin import TraceExceptionsMixin


class Exceptions(
    RequestExceptionsMixin,
    TraceExceptionsMixin,
): ...
