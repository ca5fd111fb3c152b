"""
Upload Staging
Streams an uploaded spreadsheet to a local temp file and guarantees its removal
"""
import logging
import secrets
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import UploadFile

from leadwave.core.config import Settings
from leadwave.core.errors import FileTooLargeError, UnsupportedFileError
from leadwave.infrastructure.importers.spreadsheet_reader import file_extension, is_supported

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 1024 * 1024


@dataclass
class StagedUpload:
    """Metadata of an upload staged on local disk"""
    filename: str
    path: Path
    size: int


def _staged_name(filename: str) -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{file_extension(filename)}"


@asynccontextmanager
async def stage_upload(file: Optional[UploadFile], settings: Settings) -> AsyncIterator[StagedUpload]:
    """
    Stage an uploaded file on disk for the duration of the block.

    The size limit is enforced while streaming, before anything is parsed.
    The staged file is deleted on every exit path.

    Usage:
        async with stage_upload(file, settings) as staged:
            rows = read_rows(staged.path, staged.filename)

    Raises:
        UnsupportedFileError: Missing file or extension not csv/xlsx/xls
        FileTooLargeError: Upload exceeds settings.max_upload_bytes
    """
    if file is None or not file.filename:
        raise UnsupportedFileError("File is required")

    if not is_supported(file.filename):
        raise UnsupportedFileError("Only CSV and XLSX files are allowed")

    limit = settings.max_upload_bytes
    if file.size is not None and file.size > limit:
        raise FileTooLargeError(limit)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / _staged_name(file.filename)

    try:
        size = 0
        with open(path, "wb") as out:
            while True:
                chunk = await file.read(READ_CHUNK_BYTES)
                if not chunk:
                    break
                size += len(chunk)
                if size > limit:
                    raise FileTooLargeError(limit)
                out.write(chunk)

        logger.info(f"Staged upload {file.filename} ({size} bytes) at {path}")
        yield StagedUpload(filename=file.filename, path=path, size=size)
    finally:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed staged upload {path}")
