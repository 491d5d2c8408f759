import os
from collections.abc import Collection
from pathlib import Path

os.environ['DATABASE_URL'] = 'sqlite+aiosqlite://'
os.environ.setdefault('ENV', 'test')

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from gpxtrace.db import db_create_schema  # noqa: E402
from gpxtrace.models.trace_config import TraceConfig  # noqa: E402


def pytest_collection_modifyitems(config: pytest.Config, items: Collection[pytest.Item]):
    # run all tests in the session in the same event loop
    # https://pytest-asyncio.readthedocs.io/en/latest/how-to-guides/run_session_tests_in_same_loop.html
    session_scope_marker = pytest.mark.asyncio(loop_scope='session')
    for item in items:
        if pytest_asyncio.is_async_test(item):
            item.add_marker(session_scope_marker, append=False)


@pytest_asyncio.fixture(scope='session', autouse=True)
async def schema():
    await db_create_schema()


@pytest.fixture
def config(tmp_path: Path) -> TraceConfig:
    trace_dir = tmp_path.joinpath('traces')
    image_dir = tmp_path.joinpath('images')
    trace_dir.mkdir()
    image_dir.mkdir()
    return TraceConfig.from_settings(trace_dir=trace_dir, image_dir=image_dir)
