from datetime import timedelta
from typing import NoReturn, override

from sizestr import sizestr

from gpxtrace.exceptions.trace_error import (
    ExtractionFailure,
    InvalidMetadataXml,
    InvalidUserInput,
    MalformedGpxError,
    PersistenceFailure,
    TraceIdMismatchError,
    TraceNotFound,
)
from gpxtrace.exceptions.trace_mixin import TraceExceptionsMixin


class TraceExceptions06Mixin(TraceExceptionsMixin):
    @override
    def trace_not_found(self, trace_id: int) -> NoReturn:
        raise TraceNotFound(f'Trace {trace_id} not found')

    @override
    def trace_file_archive_corrupted(self, kind: str, cause: BaseException | None = None) -> NoReturn:
        raise ExtractionFailure(
            f'Trace file archive failed to decompress {kind!r}',
            kind=kind,
            cause=cause,
        )

    @override
    def trace_file_archive_too_many_files(self, kind: str) -> NoReturn:
        raise ExtractionFailure(
            f'Trace file archive {kind!r} contains too many files',
            kind=kind,
        )

    @override
    def trace_file_archive_too_big(self, kind: str, limit: int) -> NoReturn:
        raise ExtractionFailure(
            f'Trace file archive {kind!r} uncompressed size exceeds {sizestr(limit)}',
            kind=kind,
        )

    @override
    def trace_file_extract_timeout(self, kind: str, timeout: timedelta) -> NoReturn:
        raise ExtractionFailure(
            f'Trace file archive {kind!r} did not decompress within {timeout.total_seconds():g}s',
            kind=kind,
            cause=TimeoutError(),
        )

    @override
    def bad_trace_file(self, message: str) -> NoReturn:
        raise MalformedGpxError(f'Failed to parse trace file: {message}')

    @override
    def trace_points_persist_failed(self, trace_id: int, cause: BaseException) -> NoReturn:
        raise PersistenceFailure(
            f'Failed to store points of trace {trace_id}: {cause}',
            trace_id=trace_id,
            cause=cause,
        )

    @override
    def bad_trace_xml(self, message: str, xml_input: bytes | str) -> NoReturn:
        raise InvalidMetadataXml(f'Cannot parse valid trace from xml string {xml_excerpt(xml_input)}. {message}')

    @override
    def trace_id_invalid(self, value: str) -> NoReturn:
        raise InvalidUserInput(f'ID of trace cannot be zero when updating (got {value!r}).')

    @override
    def trace_id_mismatch(self, trace_id: int, xml_id: int) -> NoReturn:
        raise TraceIdMismatchError(
            f'The id in the url ({trace_id}) is not the same as provided in the xml ({xml_id})',
            expected_id=trace_id,
            actual_id=xml_id,
        )


def xml_excerpt(xml_input: bytes | str, limit: int = 200) -> str:
    if isinstance(xml_input, bytes):
        xml_input = xml_input[:limit].decode(errors='replace')
    return xml_input[:limit]
