import logging
import subprocess
from collections.abc import Sequence
from tempfile import NamedTemporaryFile
from typing import override

from anyio import BrokenResourceError, ClosedResourceError, create_task_group, open_process
from anyio.abc import ByteReceiveStream, ByteSendStream

from gpxtrace.lib.exceptions_context import raise_for
from gpxtrace.lib.trace_file import ContentKind, TraceExtractor

# the processes read from stdin and write to stdout
_COMMANDS: dict[ContentKind, tuple[str, ...]] = {
    ContentKind.gzip: ('gzip', '-d', '-c'),
    ContentKind.bzip2: ('bzip2', '-d', '-c'),
    ContentKind.tar: ('tar', '-xOf', '-'),
    ContentKind.tar_gzip: ('tar', '-zxOf', '-'),
    ContentKind.tar_bzip2: ('tar', '-jxOf', '-'),
}

# unzip reports 11 when the resource fork exclusion pattern matched nothing
_UNZIP_OK_CODES = frozenset((0, 11))


class ProcessTraceExtractor(TraceExtractor):
    """
    Decompresses by running the system archive tools as subordinate processes.

    A process still running when the timeout scope is cancelled is killed.
    """

    __slots__ = ()

    @override
    async def _extract(self, buffer: bytes, kind: ContentKind) -> bytes:
        if kind == ContentKind.zip:
            # unzip cannot read archives from stdin
            with NamedTemporaryFile(prefix='gpxtrace-', suffix='.zip') as f:
                f.write(buffer)
                f.flush()
                return await self._run(
                    ('unzip', '-p', f.name, '-x', '__MACOSX/*'),
                    kind,
                    stdin=b'',
                    ok_codes=_UNZIP_OK_CODES,
                )

        command = _COMMANDS.get(kind)
        if command is None:
            raise NotImplementedError(f'Unsupported trace file kind {kind!r}')
        return await self._run(command, kind, stdin=buffer)

    async def _run(
        self,
        command: Sequence[str],
        kind: ContentKind,
        *,
        stdin: bytes,
        ok_codes: frozenset[int] = frozenset((0,)),
    ) -> bytes:
        logging.debug('Running %r for trace %r archive', command[0], kind.value)
        chunks: list[bytes] = []
        errors: list[bytes] = []
        too_big = False

        async with await open_process(
            command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        ) as process:
            async with create_task_group() as tg:
                tg.start_soon(_feed, process.stdin, stdin)
                tg.start_soon(_drain, process.stderr, errors)

                total_size = 0
                async for chunk in process.stdout:  # pyright: ignore[reportOptionalIterable]
                    total_size += len(chunk)
                    if total_size > self._max_size:
                        too_big = True
                        process.kill()
                        break
                    chunks.append(chunk)

            returncode = await process.wait()

        if too_big:
            raise_for.trace_file_archive_too_big(kind.value, self._max_size)
        if returncode not in ok_codes:
            message = b''.join(errors).decode(errors='replace').strip()
            raise_for.trace_file_archive_corrupted(
                kind.value,
                subprocess.CalledProcessError(returncode, command, stderr=message),
            )

        return b''.join(chunks)


async def _feed(stream: ByteSendStream | None, data: bytes) -> None:
    if stream is None:
        return
    try:
        if data:
            await stream.send(data)
        await stream.aclose()
    except (BrokenResourceError, ClosedResourceError):
        # the process exited without reading all input; its exit status tells why
        pass


async def _drain(stream: ByteReceiveStream | None, sink: list[bytes]) -> None:
    if stream is None:
        return
    async for chunk in stream:
        sink.append(chunk)
