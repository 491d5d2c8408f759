from abc import abstractmethod
from typing import NoReturn


class RequestExceptionsMixin:
    @abstractmethod
    def input_too_big(self, size: int) -> NoReturn:
        raise NotImplementedError
