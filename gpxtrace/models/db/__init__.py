from gpxtrace.models.db.base import Base
from gpxtrace.models.db.file import File
from gpxtrace.models.db.trace import Trace
from gpxtrace.models.db.trace_attachment import TraceAttachment
from gpxtrace.models.db.trace_point import TracePoint
from gpxtrace.models.db.trace_tag import TraceTag

__all__ = (
    'Base',
    'File',
    'Trace',
    'TraceAttachment',
    'TracePoint',
    'TraceTag',
)
