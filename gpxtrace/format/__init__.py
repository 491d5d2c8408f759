from gpxtrace.format.api06_trace import Trace06Mixin


class Format06(
    Trace06Mixin,
): ...
