from gpxtrace.models.trace_config import TraceConfig
from gpxtrace.queries.trace_query import TraceQuery
from gpxtrace.services.trace_import_service import TraceImportService
from tests.utils.gpx_data import gpx_bytes, line
from tests.utils.trace_factory import create_legacy_trace


async def test_find_many_pending(config: TraceConfig):
    pending = await create_legacy_trace(gpx_bytes([line(5)]), config)
    imported = await create_legacy_trace(gpx_bytes([line(5)]), config)
    await TraceImportService.import_trace(imported.id, config)

    ids = {trace.id for trace in await TraceQuery.find_many_pending(limit=1000)}
    assert pending.id in ids
    assert imported.id not in ids
