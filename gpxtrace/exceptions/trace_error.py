from http import HTTPStatus


class TraceError(Exception):
    """Base class of every error raised while processing a trace."""

    status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ExtractionFailure(TraceError):
    """The trace file container failed to decompress or timed out."""

    def __init__(self, detail: str, *, kind: str, cause: BaseException | None = None) -> None:
        super().__init__(detail)
        self.kind = kind
        self.cause = cause


class MalformedGpxError(TraceError):
    pass


class InvalidMetadataXml(TraceError):
    pass


class InvalidUserInput(TraceError):
    pass


class TraceIdMismatchError(InvalidMetadataXml, InvalidUserInput):
    def __init__(self, detail: str, *, expected_id: int, actual_id: int) -> None:
        super().__init__(detail)
        self.expected_id = expected_id
        self.actual_id = actual_id


class PersistenceFailure(TraceError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, *, trace_id: int, cause: BaseException | None = None) -> None:
        super().__init__(detail)
        self.trace_id = trace_id
        self.cause = cause


class TraceNotFound(TraceError):
    status_code = HTTPStatus.NOT_FOUND


class InputTooBig(TraceError):
    status_code = HTTPStatus.REQUEST_ENTITY_TOO_LARGE
