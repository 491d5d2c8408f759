from typing import NoReturn, override

from sizestr import sizestr

from gpxtrace.exceptions.request_mixin import RequestExceptionsMixin
from gpxtrace.exceptions.trace_error import InputTooBig


class RequestExceptions06Mixin(RequestExceptionsMixin):
    @override
    def input_too_big(self, size: int) -> NoReturn:
        raise InputTooBig(f'Request entity too large: {sizestr(size)}')
