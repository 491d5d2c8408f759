from datetime import timedelta
from pathlib import Path
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, PositiveInt

from gpxtrace.config import (
    GPX_IMAGE_DIR,
    GPX_TRACE_DIR,
    TRACE_FILE_ARCHIVE_MAX_FILES,
    TRACE_FILE_EXTRACT_TIMEOUT,
    TRACE_FILE_EXTRACTOR,
    TRACE_FILE_STORAGE_URL,
    TRACE_FILE_UNCOMPRESSED_MAX_SIZE,
    TRACE_ICON_SIZE,
    TRACE_ICON_STORAGE_URL,
    TRACE_IMAGE_FRAME_DELAY,
    TRACE_IMAGE_FRAMES,
    TRACE_IMAGE_SIZE,
    TRACE_IMAGE_STORAGE_URL,
    TRACE_POINT_BATCH_SIZE,
)


class TraceConfig(BaseModel):
    """Explicit configuration of the trace pipeline, passed into every entry point."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    # legacy filesystem layout
    trace_dir: Path
    image_dir: Path

    # blob storage
    file_storage_url: str
    image_storage_url: str
    icon_storage_url: str

    # extraction
    extractor: Literal['native', 'process']
    extract_timeout: timedelta
    uncompressed_max_size: PositiveInt
    archive_max_files: PositiveInt

    # import and rendering
    point_batch_size: PositiveInt
    image_size: PositiveInt
    icon_size: PositiveInt
    image_frames: PositiveInt
    image_frame_delay: timedelta

    @classmethod
    def from_settings(cls, **overrides) -> Self:
        """Build the configuration from the settings module, applying the given overrides."""
        return cls.model_validate({
            'trace_dir': GPX_TRACE_DIR,
            'image_dir': GPX_IMAGE_DIR,
            'file_storage_url': TRACE_FILE_STORAGE_URL,
            'image_storage_url': TRACE_IMAGE_STORAGE_URL,
            'icon_storage_url': TRACE_ICON_STORAGE_URL,
            'extractor': TRACE_FILE_EXTRACTOR,
            'extract_timeout': TRACE_FILE_EXTRACT_TIMEOUT,
            'uncompressed_max_size': int(TRACE_FILE_UNCOMPRESSED_MAX_SIZE),
            'archive_max_files': TRACE_FILE_ARCHIVE_MAX_FILES,
            'point_batch_size': TRACE_POINT_BATCH_SIZE,
            'image_size': TRACE_IMAGE_SIZE,
            'icon_size': TRACE_ICON_SIZE,
            'image_frames': TRACE_IMAGE_FRAMES,
            'image_frame_delay': TRACE_IMAGE_FRAME_DELAY,
            **overrides,
        })

    def trace_path(self, trace_id: int) -> Path:
        """Legacy path of the original trace file."""
        return self.trace_dir.joinpath(f'{trace_id}.gpx')

    def image_path(self, trace_id: int) -> Path:
        """Legacy path of the full-size trace image."""
        return self.image_dir.joinpath(f'{trace_id}.gif')

    def icon_path(self, trace_id: int) -> Path:
        """Legacy path of the trace icon."""
        return self.image_dir.joinpath(f'{trace_id}_icon.gif')
