from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import CleanerConfig
from ..logging.error_log import ErrorLogBuffer
from ..models.entity_file import EntityFile, FileStatus
from ..models.entity_row import EntityKind
from ..models.validation_report import EntityStat, ValidationReport
from ..tabular.reader import SUPPORTED_SUFFIXES, SheetHeaderError, UnsupportedFileError, load_entity_file
from .progress import ProgressTracker
from .session import ValidationSession

"""Batch run orchestration.

process_all():
1. Locate each configured entity file under source_directory
2. Read + normalize it (a bad file is recorded as FAILED; the run goes on)
3. Load the rows into a ValidationSession (tasks first so clients can be
   cross-referenced)
4. Buffer every error into the JSON Lines error log and flush once
5. Return a ValidationReport
"""

__all__ = [
    "ProcessingError",
    "LOAD_ORDER",
    "locate_entity_files",
    "process_all",
]

logger = logging.getLogger(__name__)

# tasks before clients: client validation reads the task collection
LOAD_ORDER = (EntityKind.TASK, EntityKind.WORKER, EntityKind.CLIENT)


class ProcessingError(Exception):
    """Fatal run error (source directory unusable)."""


def locate_entity_files(config: CleanerConfig) -> list[EntityFile]:
    """Resolve configured entity files in load order.

    Raises:
        ProcessingError: source_directory missing or not a directory
    """
    directory = Path(config.source_directory)
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    files: list[EntityFile] = []
    for kind in LOAD_ORDER:
        path = config.entity_path(kind)
        if path is not None:
            files.append(EntityFile(entity=kind, path=path))
    return files


def _load_file(entity_file: EntityFile, config: CleanerConfig) -> tuple[EntityFile, list[dict]]:
    path = entity_file.path
    if not path.is_file():
        return EntityFile(entity_file.entity, path, FileStatus.FAILED, error=f"file not found: {path}"), []
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        return EntityFile(entity_file.entity, path, FileStatus.FAILED, error=f"unsupported file type: {path.name}"), []
    try:
        sheet = load_entity_file(path, entity_file.entity, null_sentinels=config.null_sentinels)
    except (SheetHeaderError, UnsupportedFileError) as e:
        return EntityFile(entity_file.entity, path, FileStatus.FAILED, error=str(e)), []
    except Exception as e:
        # pandas / openpyxl surface a variety of parse errors
        logger.debug("read failed path=%s", path, exc_info=True)
        return EntityFile(entity_file.entity, path, FileStatus.FAILED, error=f"unreadable file: {e}"), []

    if sheet.missing_headers:
        logger.warning("%s: missing headers %s", path.name, sheet.missing_headers)
    loaded = EntityFile(
        entity=entity_file.entity,
        path=path,
        status=FileStatus.LOADED,
        row_count=len(sheet.rows),
        missing_headers=tuple(sheet.missing_headers),
    )
    return loaded, sheet.rows


def process_all(config: CleanerConfig, *, logs_dir: Path | None = None) -> ValidationReport:
    """Load and validate every configured entity file.

    Raises:
        ProcessingError: for fatal errors that prevent the run (bad directory)
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer(logs_dir)
    session = ValidationSession(cross_reference=config.cross_reference)

    pending = locate_entity_files(config)
    files: list[EntityFile] = []
    sources: dict[EntityKind, str] = {}

    with ProgressTracker(len(pending)) as progress:
        for entity_file in pending:
            progress.start_file(entity_file.path)
            result, rows = _load_file(entity_file, config)
            files.append(result)
            if result.status == FileStatus.LOADED:
                session.load(result.entity, rows)
                sources[result.entity] = result.name
                logger.info("loaded %s rows=%d from %s", result.entity.collection, result.row_count, result.name)
            else:
                logger.error("%s: %s", result.entity.collection, result.error)
            progress.set_postfix(errors=len(session.all_errors()))
            progress.finish_file()

    errors = session.all_errors()
    for err in errors:
        error_log.append(err, sources.get(err.entity, ""))
    log_path = error_log.flush()
    if log_path is not None:
        logger.info("error log written: %s", log_path)

    stats = {
        kind: EntityStat(entity=kind, rows=len(session.rows(kind)), errors=len(session.errors(kind)))
        for kind in EntityKind
    }
    end_time = datetime.now(UTC)
    return ValidationReport(
        files=files,
        stats=stats,
        errors=errors,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        error_log_path=log_path,
        rows={kind: session.rows(kind) for kind in EntityKind},
    )
