from abc import abstractmethod
from datetime import timedelta
from typing import NoReturn

from gpxtrace.models.types import TraceId


class TraceExceptionsMixin:
    @abstractmethod
    def trace_not_found(self, trace_id: TraceId) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def trace_file_archive_corrupted(self, kind: str, cause: BaseException | None = None) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def trace_file_archive_too_many_files(self, kind: str) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def trace_file_archive_too_big(self, kind: str, limit: int) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def trace_file_extract_timeout(self, kind: str, timeout: timedelta) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def bad_trace_file(self, message: str) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def trace_points_persist_failed(self, trace_id: TraceId, cause: BaseException) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def bad_trace_xml(self, message: str, xml_input: bytes | str) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def trace_id_invalid(self, value: str) -> NoReturn:
        raise NotImplementedError

    @abstractmethod
    def trace_id_mismatch(self, trace_id: TraceId, xml_id: int) -> NoReturn:
        raise NotImplementedError
