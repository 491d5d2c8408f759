import logging
import tarfile
import zlib
from abc import ABC, abstractmethod
from bz2 import BZ2Decompressor
from enum import Enum
from io import BytesIO
from tarfile import TarError
from typing import NoReturn, override
from zipfile import BadZipFile, ZipFile

import magic
from anyio import fail_after, to_thread
from sizestr import sizestr

from gpxtrace.config import TRACE_FILE_SNIFF_SIZE
from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.models.trace_config import TraceConfig


class ContentKind(str, Enum):
    plain_xml = 'plain_xml'
    gzip = 'gzip'
    bzip2 = 'bzip2'
    zip = 'zip'
    tar = 'tar'
    tar_gzip = 'tar_gzip'
    tar_bzip2 = 'tar_bzip2'


# libmagic reports different media types depending on its version
_GZIP_TYPES = frozenset(('application/gzip', 'application/x-gzip'))
_BZIP2_TYPES = frozenset(('application/x-bzip2', 'application/bzip2'))
_ZIP_TYPES = frozenset(('application/zip', 'application/x-zip-compressed'))
_TAR_TYPES = frozenset(('application/x-tar', 'application/x-gtar', 'application/x-ustar'))
_XML_TYPES = frozenset(('text/xml', 'application/xml', 'text/plain'))

_CONTENT_TYPES: dict[ContentKind, str] = {
    ContentKind.tar_gzip: 'application/x-tar+gzip',
    ContentKind.tar_bzip2: 'application/x-tar+x-bzip2',
    ContentKind.tar: 'application/x-tar',
    ContentKind.zip: 'application/zip',
    ContentKind.gzip: 'application/gzip',
    ContentKind.bzip2: 'application/x-bzip2',
    ContentKind.plain_xml: 'application/gpx+xml',
}

_EXTENSIONS: dict[str, str] = {
    'application/x-tar+gzip': '.tar.gz',
    'application/x-tar+x-bzip2': '.tar.bz2',
    'application/x-tar': '.tar',
    'application/zip': '.zip',
    'application/gzip': '.gpx.gz',
    'application/x-bzip2': '.gpx.bz2',
}


class TraceFile:
    @staticmethod
    def classify(buffer: bytes) -> ContentKind:
        """
        Classify the trace file container by its content.

        The file name is never consulted; uploads are routinely mislabeled.
        Compressed streams are peeked into, so that a compressed tar archive
        is not mistaken for a compressed document.
        """
        media_type = _sniff(buffer)

        if media_type in _TAR_TYPES:
            kind = ContentKind.tar
        elif media_type in _ZIP_TYPES:
            kind = ContentKind.zip
        elif media_type in _GZIP_TYPES:
            inner = _sniff(_peek_gzip(buffer))
            kind = ContentKind.tar_gzip if inner in _TAR_TYPES else ContentKind.gzip
        elif media_type in _BZIP2_TYPES:
            inner = _sniff(_peek_bzip2(buffer))
            kind = ContentKind.tar_bzip2 if inner in _TAR_TYPES else ContentKind.bzip2
        else:
            if media_type not in _XML_TYPES:
                logging.info('Unrecognized trace file content %r, assuming plain XML', media_type)
            kind = ContentKind.plain_xml

        logging.debug('Trace file content %r classified as %s', media_type, kind.value)
        return kind

    @staticmethod
    def content_type(kind: ContentKind) -> str:
        """Get the media type stored alongside a trace file of the given kind."""
        return _CONTENT_TYPES.get(kind, 'application/gpx+xml')

    @staticmethod
    def extension(content_type: str) -> str:
        """Get the file name extension for a trace file media type."""
        return _EXTENSIONS.get(content_type, '.gpx')

    @staticmethod
    async def extract(buffer: bytes, kind: ContentKind, config: TraceConfig) -> bytes:
        """Extract the GPX document from a classified trace file, using the configured extractor."""
        return await get_extractor(config).extract(buffer, kind)


class TraceExtractor(ABC):
    """Produces a single GPX byte stream from a classified trace file."""

    __slots__ = ('_max_files', '_max_size', '_timeout')

    def __init__(self, config: TraceConfig):
        self._timeout = config.extract_timeout
        self._max_size: int = config.uncompressed_max_size
        self._max_files: int = config.archive_max_files

    async def extract(self, buffer: bytes, kind: ContentKind) -> bytes:
        if kind == ContentKind.plain_xml:
            logging.debug('Trace %r uncompressed size is %s', kind.value, sizestr(len(buffer)))
            return buffer

        try:
            with fail_after(self._timeout.total_seconds()):
                result = await self._extract(buffer, kind)
        except TimeoutError:
            raise_for.trace_file_extract_timeout(kind.value, self._timeout)

        logging.debug('Trace %r archive uncompressed size is %s', kind.value, sizestr(len(result)))
        return result

    @abstractmethod
    async def _extract(self, buffer: bytes, kind: ContentKind) -> bytes:
        """Extract a compressed or archived trace file. Runs inside the timeout scope."""
        ...

    def _check_size(self, kind: ContentKind, size: int) -> None:
        if size > self._max_size:
            raise_for.trace_file_archive_too_big(kind.value, self._max_size)

    def _check_files(self, kind: ContentKind, count: int) -> None:
        logging.debug('Trace %r archive contains %d files', kind.value, count)
        if count > self._max_files:
            raise_for.trace_file_archive_too_many_files(kind.value)


class NativeTraceExtractor(TraceExtractor):
    """Decompresses with the standard library codecs in a worker thread."""

    __slots__ = ()

    @override
    async def _extract(self, buffer: bytes, kind: ContentKind) -> bytes:
        # the worker thread cannot be interrupted; on timeout its result is discarded
        return await to_thread.run_sync(self.extract_sync, buffer, kind, abandon_on_cancel=True)

    def extract_sync(self, buffer: bytes, kind: ContentKind) -> bytes:
        if kind == ContentKind.plain_xml:
            return buffer
        if kind == ContentKind.gzip:
            return self._gunzip(buffer, kind)
        if kind == ContentKind.bzip2:
            return self._bunzip2(buffer, kind)
        if kind == ContentKind.zip:
            return self._unzip(buffer, kind)
        if kind == ContentKind.tar:
            return self._untar(buffer, kind)
        if kind == ContentKind.tar_gzip:
            return self._untar(self._gunzip(buffer, kind), kind)
        if kind == ContentKind.tar_bzip2:
            return self._untar(self._bunzip2(buffer, kind), kind)
        raise NotImplementedError(f'Unsupported trace file kind {kind!r}')

    def _gunzip(self, buffer: bytes, kind: ContentKind) -> bytes:
        chunks: list[bytes] = []
        total_size = 0

        try:
            # concatenated gzip members decompress into a single stream, like gunzip does
            while True:
                decompressor = zlib.decompressobj(zlib.MAX_WBITS | 16)
                chunk = decompressor.decompress(buffer, self._max_size - total_size + 1)
                chunks.append(chunk)
                total_size += len(chunk)
                self._check_size(kind, total_size)
                if not decompressor.eof:
                    _corrupted(kind, EOFError('Compressed file ended before the end-of-stream marker'))
                buffer = decompressor.unused_data
                if not buffer:
                    break
        except zlib.error as e:
            _corrupted(kind, e)

        return b''.join(chunks)

    def _bunzip2(self, buffer: bytes, kind: ContentKind) -> bytes:
        chunks: list[bytes] = []
        total_size = 0

        try:
            while True:
                decompressor = BZ2Decompressor()
                chunk = decompressor.decompress(buffer, self._max_size - total_size + 1)
                chunks.append(chunk)
                total_size += len(chunk)
                self._check_size(kind, total_size)
                if not decompressor.eof:
                    _corrupted(kind, EOFError('Compressed file ended before the end-of-stream marker'))
                buffer = decompressor.unused_data
                if not buffer:
                    break
        except (OSError, ValueError) as e:
            _corrupted(kind, e)

        return b''.join(chunks)

    def _untar(self, buffer: bytes, kind: ContentKind) -> bytes:
        try:
            # the buffer is already decompressed, 'r:' refuses any further compression
            with tarfile.open(fileobj=BytesIO(buffer), mode='r:') as archive:
                infos = [info for info in archive.getmembers() if info.isfile()]
                self._check_files(kind, len(infos))

                # no size check, tar does not compress: the output is smaller than the input
                return b''.join(archive.extractfile(info).read() for info in infos)  # pyright: ignore[reportOptionalMemberAccess]
        except (TarError, EOFError) as e:
            _corrupted(kind, e)

    def _unzip(self, buffer: bytes, kind: ContentKind) -> bytes:
        try:
            with ZipFile(BytesIO(buffer)) as archive:
                infos = [
                    info
                    for info in archive.infolist()
                    if not info.is_dir() and not info.filename.startswith('__MACOSX/')
                ]
                self._check_files(kind, len(infos))

                chunks: list[bytes] = []
                remaining_size = self._max_size

                for info in infos:
                    with archive.open(info) as f:
                        while chunk := f.read(min(remaining_size + 1, 1024 * 1024)):
                            chunks.append(chunk)
                            remaining_size -= len(chunk)
                            if remaining_size < 0:
                                raise_for.trace_file_archive_too_big(kind.value, self._max_size)

        except (BadZipFile, EOFError, RuntimeError, zlib.error, NotImplementedError) as e:
            _corrupted(kind, e)

        return b''.join(chunks)


def get_extractor(config: TraceConfig) -> TraceExtractor:
    """Get the extractor implementation selected by the configuration."""
    if config.extractor == 'process':
        # Lazy import, subprocess support is optional
        from gpxtrace.lib.trace_file_process import ProcessTraceExtractor  # noqa: PLC0415

        return ProcessTraceExtractor(config)

    return NativeTraceExtractor(config)


def _sniff(buffer: bytes) -> str:
    if not buffer:
        return 'application/x-empty'
    return magic.from_buffer(buffer[:TRACE_FILE_SNIFF_SIZE], mime=True)


def _peek_gzip(buffer: bytes) -> bytes:
    try:
        return zlib.decompressobj(zlib.MAX_WBITS | 16).decompress(buffer, TRACE_FILE_SNIFF_SIZE)
    except zlib.error:
        return b''


def _peek_bzip2(buffer: bytes) -> bytes:
    try:
        return BZ2Decompressor().decompress(buffer, TRACE_FILE_SNIFF_SIZE)
    except (OSError, ValueError):
        return b''


def _corrupted(kind: ContentKind, cause: BaseException) -> NoReturn:
    logging.debug('Trace %r archive is corrupted', kind.value, exc_info=cause)
    raise_for.trace_file_archive_corrupted(kind.value, cause)
