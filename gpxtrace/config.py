from datetime import timedelta
from logging.config import dictConfig
from pathlib import Path
from typing import Literal

from pydantic import ByteSize

from gpxtrace.lib.pydantic_settings_integration import pydantic_settings_integration


def _ByteSize(v: str) -> ByteSize:  # noqa: N802
    return ByteSize._validate(v, None)  # noqa: SLF001  # type: ignore


NAME = 'gpxtrace'
VERSION = '0.1.0'

# -------------------- System Configuration --------------------

# Core settings
ENV: Literal['dev', 'test', 'prod'] = 'prod'
LOG_LEVEL: Literal['DEBUG', 'INFO', 'WARNING'] | None = None

# Database connection
# production deployments use 'postgresql+asyncpg://...'
DATABASE_URL = 'sqlite+aiosqlite:///data/gpxtrace.db'
DATABASE_ECHO = False

# Storage paths
FILE_STORE_DIR: Path = Path('data/store')
GPX_TRACE_DIR: Path = Path('data/traces')
GPX_IMAGE_DIR: Path = Path('data/images')

# Storage URLs
TRACE_FILE_STORAGE_URL = 'db://trace_file'
TRACE_IMAGE_STORAGE_URL = 'db://trace_image'
TRACE_ICON_STORAGE_URL = 'db://trace_icon'

# -------------------- Trace Processing --------------------

TRACE_FILE_EXTRACTOR: Literal['native', 'process'] = 'native'
TRACE_FILE_EXTRACT_TIMEOUT = timedelta(seconds=60)
TRACE_FILE_UNCOMPRESSED_MAX_SIZE = _ByteSize('80 MiB')
TRACE_FILE_ARCHIVE_MAX_FILES = 10
TRACE_FILE_SNIFF_SIZE = 2048

TRACE_POINT_BATCH_SIZE = 1000

TRACE_IMAGE_SIZE = 250
TRACE_ICON_SIZE = 50
TRACE_IMAGE_FRAMES = 10
TRACE_IMAGE_FRAME_DELAY = timedelta(milliseconds=500)

TRACE_TAG_MAX_LENGTH = 255
TRACE_TAGS_LIMIT = 100

XML_PARSE_MAX_SIZE = _ByteSize('50 MiB')

# Load settings from environment
pydantic_settings_integration(__name__, globals())

# -------------------- Derived Configuration --------------------

if LOG_LEVEL is None:
    LOG_LEVEL = 'INFO' if ENV == 'prod' else 'DEBUG'  # pyright: ignore[reportConstantRedefinition]

# -------------------- Logging configuration --------------------

dictConfig({
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '%(levelname)s | %(asctime)s | %(name)s %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },
    'handlers': {
        'default': {
            'formatter': 'default',
            'class': 'logging.StreamHandler',
            'stream': 'ext://sys.stderr',
        },
    },
    'loggers': {
        'root': {'handlers': ['default'], 'level': LOG_LEVEL},
        **{
            # reduce logging verbosity of some modules
            module: {'handlers': [], 'level': 'INFO'}
            for module in (
                'aiosqlite',
                'asyncio',
                'PIL',
                'sqlalchemy.engine',
            )
        },
    },
})
