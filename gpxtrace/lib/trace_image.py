import logging
from collections.abc import Sequence
from datetime import timedelta
from io import BytesIO
from math import ceil

import numpy as np
from anyio import to_thread
from PIL import Image, ImageDraw
from PIL.Image import Resampling

from gpxtrace.lib.mercator import mercator
from gpxtrace.models.db.trace_point import TracePoint
from gpxtrace.models.trace_bounds import TraceBounds
from gpxtrace.models.trace_config import TraceConfig

_sample_points_per_frame = 20
_antialias = 4

_background_color = 255
_primary_color = 0
_primary_width = 3 * _antialias
_secondary_color = 187
_secondary_width = 1 * _antialias

_Coords = list[tuple[float, float]]


class TraceImage:
    image_suffix = '.gif'
    icon_suffix = '_icon.gif'
    content_type = 'image/gif'

    @staticmethod
    async def generate_async(
        points: Sequence[TracePoint],
        bounds: TraceBounds,
        config: TraceConfig,
    ) -> tuple[bytes, bytes]:
        """
        Generate animation and icon images from a sequence of trace points.
        """
        # Pillow frees the GIL when doing some image operations
        return await to_thread.run_sync(
            lambda: TraceImage.generate(
                points,
                bounds,
                size=config.image_size,
                icon_size=config.icon_size,
                frames=config.image_frames,
                frame_delay=config.image_frame_delay,
            )
        )

    @staticmethod
    def generate(
        points: Sequence[TracePoint],
        bounds: TraceBounds,
        *,
        size: int = 250,
        icon_size: int = 50,
        frames: int = 10,
        frame_delay: timedelta = timedelta(milliseconds=500),
    ) -> tuple[bytes, bytes]:
        """
        Generate animation and icon images from a sequence of trace points.

        Points must be ordered by segment and time. Every segment is drawn as its own
        polyline; each animation frame highlights the next slice of the points.
        The output depends only on the input.
        """
        if not points:
            raise ValueError('Cannot render a trace without points')

        # sample points to speed up image generation
        max_points = _sample_points_per_frame * frames
        if len(points) > max_points:
            step = (len(points) - 1) // (max_points - 1)
            indices = list(range(0, len(points), step))[: max_points - 1]

            # make sure we always include the last point (nice visually)
            if indices[-1] != len(points) - 1:
                indices.append(len(points) - 1)

            points = [points[i] for i in indices]

        logging.debug('Generating %d frames animation for %d points', frames, len(points))

        gen_size = size * _antialias
        gen_size_tuple = gen_size, gen_size
        coords = np.array([(p.lon, p.lat) for p in points], dtype=np.float64)
        points_proj: _Coords = [(float(x), float(y)) for x, y in mercator(coords, gen_size, gen_size, bounds)]
        segments = _split_segments(points, points_proj)
        points_per_frame = ceil(len(points) / frames)

        # animation generation
        # L = luminance (grayscale)
        base_frame = Image.new('L', gen_size_tuple, color=_background_color)
        draw = ImageDraw.Draw(base_frame)
        for _, segment in segments:
            _polyline(draw, segment, _secondary_color, _secondary_width)

        animation_frames: list[Image.Image] = []

        for n in range(frames):
            start_idx = n * points_per_frame
            end_idx = start_idx + points_per_frame

            frame = base_frame.copy()
            draw = ImageDraw.Draw(frame)
            for offset, segment in segments:
                # include the next point, so that consecutive slices connect
                lo = max(start_idx - offset, 0)
                hi = min(end_idx - offset + 1, len(segment))
                if lo < hi:
                    _polyline(draw, segment[lo:hi], _primary_color, _primary_width)

            animation_frames.append(frame.resize((size, size), Resampling.BOX))

        with BytesIO() as buffer:
            animation_frames[0].save(
                buffer,
                save_all=True,
                append_images=animation_frames[1:],
                duration=int(frame_delay.total_seconds() * 1000),
                loop=0,
                format='GIF',
            )

            animation = buffer.getvalue()
            buffer.seek(0)
            buffer.truncate()

            # icon generation
            downscale = size / icon_size
            base_frame = Image.new('L', gen_size_tuple, color=_background_color)
            draw = ImageDraw.Draw(base_frame)
            for _, segment in segments:
                _polyline(draw, segment, _primary_color, round(_secondary_width * downscale + 10))
            base_frame = base_frame.resize((icon_size, icon_size), Resampling.BOX)

            base_frame.save(buffer, format='GIF')

            icon = buffer.getvalue()

        return animation, icon


def _split_segments(points: Sequence[TracePoint], points_proj: _Coords) -> list[tuple[int, _Coords]]:
    """Split the projected points into (start index, coords) runs of the same segment."""
    result: list[tuple[int, _Coords]] = []
    start = 0

    for i in range(1, len(points) + 1):
        if i == len(points) or points[i].trackid != points[start].trackid:
            result.append((start, points_proj[start:i]))
            start = i

    return result


def _polyline(draw: ImageDraw.ImageDraw, coords: _Coords, fill: int, width: int) -> None:
    if len(coords) > 1:
        draw.line(coords, fill=fill, width=width, joint='curve')
        return

    # a lone point would be invisible as a line
    x, y = coords[0]
    r = width / 2
    draw.ellipse((x - r, y - r, x + r, y + r), fill=fill)
