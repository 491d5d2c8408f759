from typing import Any, NamedTuple, get_args

from gpxtrace.config import TRACE_TAGS_LIMIT
from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.lib.xmltodict import XMLToDict
from gpxtrace.models.db.trace import Trace, TraceVisibility
from gpxtrace.models.types import TraceId


class TraceMeta(NamedTuple):
    visibility: TraceVisibility
    description: str
    tags: list[str]


class Trace06Mixin:
    @staticmethod
    def encode_gpx_file(trace: Trace) -> dict:
        """
        >>> encode_gpx_file(Trace(...))
        {'gpx_file': {'@id': 1, '@uid': 1234, ...}}
        """
        return {'gpx_file': _encode_gpx_file(trace)}

    @staticmethod
    def encode_gpx_files(traces: list[Trace]) -> dict:
        """
        >>> encode_gpx_files([
        ...     Trace(...),
        ...     Trace(...),
        ... ])
        {'gpx_file': [{'@id': 1, '@uid': 1234, ...}, {'@id': 2, '@uid': 1234, ...}]}
        """
        return {'gpx_file': [_encode_gpx_file(trace) for trace in traces]}

    @staticmethod
    def decode_gpx_file(gpx_file: dict, *, trace_id: TraceId | None, create: bool) -> TraceMeta:
        """
        Decode trace metadata from gpx_file structure.

        When updating, the id attribute must be present and match the trace id.
        Raises before anything is returned, so that a failure never leaves
        a partially updated trace.
        """
        visibility = gpx_file.get('@visibility')
        if visibility is None:
            raise_for.bad_trace_xml('visibility missing', _excerpt(gpx_file))
        if visibility not in get_args(TraceVisibility):
            raise_for.bad_trace_xml(f'visibility {visibility!r} is invalid', _excerpt(gpx_file))

        if not create:
            xml_id_str = gpx_file.get('@id')
            if xml_id_str is None:
                raise_for.bad_trace_xml('ID is required when updating.', _excerpt(gpx_file))

            try:
                xml_id = int(xml_id_str)
            except ValueError:
                xml_id = 0
            if xml_id == 0:
                raise_for.trace_id_invalid(xml_id_str)
            if xml_id != trace_id:
                raise_for.trace_id_mismatch(trace_id, xml_id)  # pyright: ignore[reportArgumentType]

        description = gpx_file.get('description')
        if description is None:
            raise_for.bad_trace_xml('description missing', _excerpt(gpx_file))
        if isinstance(description, list):
            raise_for.bad_trace_xml('description must be given once', _excerpt(gpx_file))

        tags = [_text(tag) for tag in gpx_file.get('tag', ())]
        if len(tags) > TRACE_TAGS_LIMIT:
            raise_for.bad_trace_xml(f'too many tags ({len(tags)} > {TRACE_TAGS_LIMIT})', _excerpt(gpx_file))

        return TraceMeta(
            visibility=visibility,
            description=_text(description),
            tags=tags,
        )


def _encode_gpx_file(trace: Trace) -> dict:
    """Encode a trace as the attributes and children of a gpx_file element."""
    return {
        '@id': trace.id,
        '@uid': trace.user_id,
        '@timestamp': trace.timestamp,
        '@name': trace.name,
        '@lon': trace.longitude,
        '@lat': trace.latitude,
        '@visibility': trace.visibility,
        '@pending': not trace.inserted,
        'description': trace.description,
        'tag': trace.tag_names,
    }


def _text(value: Any) -> str:
    """Get the text content of a parsed element; empty elements parse to {}."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get('#text', '')
    return str(value)


def _excerpt(gpx_file: dict) -> str:
    return XMLToDict.unparse({'gpx_file': gpx_file})  # pyright: ignore[reportReturnType]
