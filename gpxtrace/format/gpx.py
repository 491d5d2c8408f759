import logging
from collections.abc import Iterable
from typing import Any, NamedTuple

from pydantic import ValidationError

from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.lib.xmltodict import XMLSyntaxError, XMLToDict
from gpxtrace.models.validating.trace_point import DecodedPoint, DecodedPointValidator


class DecodeTracksResult(NamedTuple):
    points: list[DecodedPoint]
    skipped: int
    segments: int

    @property
    def size(self) -> int:
        """Number of successfully decoded points."""
        return len(self.points)


class FormatGPX:
    @staticmethod
    def decode_file(gpx_bytes: bytes) -> DecodeTracksResult:
        """
        Decode the track points of a GPX document.

        Raises if the document is not well-formed XML.
        Individual invalid points are skipped and counted.
        """
        try:
            data = XMLToDict.parse(gpx_bytes, size_limit=None)
        except XMLSyntaxError as e:
            raise_for.bad_trace_file(str(e))

        gpx = data.get('gpx')
        if not isinstance(gpx, dict):
            logging.info('Trace file root element is not gpx: %r', next(iter(data)))
            return DecodeTracksResult([], 0, 0)

        return FormatGPX.decode_tracks(gpx.get('trk', ()))

    @staticmethod
    def decode_tracks(tracks: Iterable[Any]) -> DecodeTracksResult:
        """
        Decode the parsed trk elements of a GPX document.

        Every trkseg gets the next segment number, starting at 0. Invalid points
        are skipped and counted.
        """
        points: list[DecodedPoint] = []
        skipped = 0
        segment = -1

        for track in tracks:
            if not isinstance(track, dict):
                continue

            for trkseg in track.get('trkseg', ()):
                # every segment starts a new leg, even when it turns out empty
                segment += 1
                if not isinstance(trkseg, dict):
                    continue

                for trkpt in trkseg.get('trkpt', ()):
                    point = _decode_point(trkpt, segment)
                    if point is None:
                        skipped += 1
                    else:
                        points.append(point)

        segments = segment + 1
        if skipped:
            logging.info('Skipped %d invalid trace points', skipped)
        logging.debug('Decoded %d points in %d segments', len(points), segments)
        return DecodeTracksResult(points, skipped, segments)


def _decode_point(trkpt: Any, segment: int) -> DecodedPoint | None:
    if not isinstance(trkpt, dict):
        return None

    try:
        return DecodedPointValidator.validate_python((
            trkpt.get('@lat'),
            trkpt.get('@lon'),
            trkpt.get('ele'),
            trkpt.get('time'),
            segment,
        ))
    except ValidationError as e:
        logging.debug('Invalid trace point %r: %d errors', trkpt, e.error_count())
        return None
