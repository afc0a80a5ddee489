"""Password-protected zip packaging backed by the `zip` executable."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from share_cli.domain.entities import Artifact, ShareRequest
from share_cli.domain.errors import MissingInputError, PackagingError
from share_cli.domain.ports import Packager

_DEFAULT_CHUNK_SIZE = 64 * 1024
_DEFAULT_CHECKSUM_ALGORITHM = "sha1"

logger = logging.getLogger(__name__)


def compute_checksum(
    path: Path,
    algorithm: str = _DEFAULT_CHECKSUM_ALGORITHM,
    chunk_size: int = _DEFAULT_CHUNK_SIZE,
) -> str:
    """Return the hex digest of a file, streamed in chunks."""

    digest = hashlib.new(algorithm)
    with path.open("rb") as handle:
        while chunk := handle.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()


def archive_name(name: str) -> str:
    """Return the download file name for an archive built from `name`."""

    base = Path(name).name or "share"
    if base.lower().endswith(".zip"):
        return base
    return f"{base}.zip"


class ZipPackager(Packager):
    """Build one encrypted archive per session in a private temp directory.

    Piped input is materialized to a file first because `zip` needs a sized,
    seekable input. Size and checksum are computed over the archive itself.
    """

    def __init__(
        self,
        zip_executable: str = "zip",
        checksum_algorithm: str = _DEFAULT_CHECKSUM_ALGORITHM,
        chunk_size: int = _DEFAULT_CHUNK_SIZE,
        temp_root: Path | None = None,
    ) -> None:
        self._zip_executable = zip_executable
        self._checksum_algorithm = checksum_algorithm
        self._chunk_size = max(1, chunk_size)
        self._temp_root = temp_root
        self._temp_dirs: list[Path] = []

    async def package(self, request: ShareRequest, password: str, fallback_name: str) -> Artifact:
        if request.source is None and request.stdin is None:
            raise MissingInputError("Either stdin or [file] have to be given.")

        workdir = Path(tempfile.mkdtemp(prefix="share-cli-", dir=self._temp_root))
        self._temp_dirs.append(workdir)

        try:
            if request.source is not None:
                source = request.source.expanduser().resolve()
                if not source.exists():
                    raise PackagingError(f"Source '{request.source}' does not exist.")
                download_name = archive_name(request.name or source.name)
            else:
                assert request.stdin is not None
                input_name = Path(request.name or fallback_name).name
                source = await asyncio.to_thread(
                    self._materialize_stream,
                    request.stdin,
                    workdir / "input" / input_name,
                )
                download_name = archive_name(request.name or fallback_name)

            archive_path = workdir / download_name
            await self._run_zip(source, archive_path, password)
            size_bytes = archive_path.stat().st_size
            checksum = await asyncio.to_thread(
                compute_checksum,
                archive_path,
                self._checksum_algorithm,
                self._chunk_size,
            )
        except OSError as exc:
            raise PackagingError(f"Packaging failed: {exc}") from exc

        logger.info(
            "Packaged '%s' into %s (%s bytes, %s %s).",
            request.source or "<stdin>",
            archive_path,
            size_bytes,
            self._checksum_algorithm,
            checksum,
        )
        return Artifact(
            path=archive_path,
            size_bytes=size_bytes,
            checksum_hex=checksum,
            password=password,
            name=download_name,
        )

    async def cleanup(self) -> None:
        temp_dirs, self._temp_dirs = self._temp_dirs, []
        for temp_dir in temp_dirs:
            await asyncio.to_thread(shutil.rmtree, temp_dir, True)
            logger.debug("Removed temporary directory %s.", temp_dir)

    def _materialize_stream(self, stream: BinaryIO, target: Path) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as handle:
            shutil.copyfileobj(stream, handle, self._chunk_size)
        return target

    async def _run_zip(self, source: Path, archive_path: Path, password: str) -> None:
        if source.is_dir():
            args = ["-q", "-r", "-P", password, str(archive_path), source.name]
            cwd: Path | None = source.parent
        else:
            args = ["-q", "-j", "-P", password, str(archive_path), str(source)]
            cwd = None

        try:
            process = await asyncio.create_subprocess_exec(
                self._zip_executable,
                *args,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise PackagingError(
                f"'{self._zip_executable}' executable not found; install zip to share files."
            ) from exc

        _, stderr = await process.communicate()
        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or "<no output>"
            raise PackagingError(
                f"{self._zip_executable} exited with status {process.returncode}: {detail}"
            )


__all__ = ["ZipPackager", "archive_name", "compute_checksum"]
