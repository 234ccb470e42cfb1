"""Per-file generation tasks and the worker pool that runs them."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from .assembler import assemble_file, companion_path
from .config import default_workers
from .errors import FlugenError, InternalError, ReadError, WriteError
from .file_system import FileSystem, LocalFileSystem
from .globber import resolve_patterns
from .models import FileResult, GenerationOptions, ParsedFile, ResolvedClass, RunSummary
from .parser import parse_source
from .resolver import TypeResolver

logger = logging.getLogger(__name__)


def resolve_file(parsed: ParsedFile, options: GenerationOptions) -> List[ResolvedClass]:
    resolver = TypeResolver.for_file(parsed, options)
    return [resolver.resolve_class(cls) for cls in parsed.classes]


def generate_source(source: str, path: str, options: GenerationOptions) -> Tuple[Optional[str], int]:
    """Parse, resolve, emit and assemble one file's text.

    Returns ``(companion text or None, number of eligible classes)``.
    """
    parsed = parse_source(source, path)
    classes = resolve_file(parsed, options)
    return assemble_file(path, classes, options), len(classes)


def _failure(path: str, error: FlugenError) -> FileResult:
    return FileResult(
        path=path,
        status="failed",
        error_kind=error.kind,
        error_line=error.line,
        error_message=error.reason,
    )


def process_file(path: str, options: GenerationOptions, fs: FileSystem) -> FileResult:
    """Run read → parse → resolve → emit → assemble → write for *path*.

    Never raises: every failure is returned as a ``failed`` result.
    """
    try:
        try:
            source = fs.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            raise ReadError(f"cannot read source: {exc}", file=path) from exc

        content, class_count = generate_source(source, path, options)
        if content is None:
            logger.debug("No eligible classes in %s", path)
            return FileResult(path=path, status="skipped")

        output = companion_path(path, options)
        try:
            previous = fs.read_existing(output)
        except (OSError, UnicodeDecodeError):
            previous = None
        result = FileResult(
            path=path,
            status="unchanged",
            output_path=output,
            class_count=class_count,
            content=content,
            previous_content=previous,
        )
        if previous == content:
            return result
        if options.dry_run:
            result.status = "stale"
            return result

        try:
            fs.write_text(output, content)
        except OSError as exc:
            raise WriteError(f"cannot write {output}: {exc}", file=path) from exc
        result.status = "written"
        logger.info("Generated %s (%d class(es))", output, class_count)
        return result

    except FlugenError as exc:
        logger.warning("%s", exc)
        return _failure(path, exc)
    except Exception as exc:
        logger.exception("Unexpected error while processing %s", path)
        return _failure(path, InternalError(f"{type(exc).__name__}: {exc}", file=path))


def run_generation(
    paths: Sequence[str],
    options: GenerationOptions,
    fs: Optional[FileSystem] = None,
) -> RunSummary:
    """Process *paths* on a bounded thread pool; returns once every task has reported."""
    fs = fs or LocalFileSystem()
    workers = options.workers or default_workers()
    slots: List[Optional[FileResult]] = [None] * len(paths)

    logger.debug("Processing %d file(s) with %d worker(s)", len(paths), workers)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="flugen") as pool:
        futures = {pool.submit(process_file, path, options, fs): idx for idx, path in enumerate(paths)}
        for future, idx in futures.items():
            slots[idx] = future.result()

    return RunSummary(results=[r for r in slots if r is not None])


def run(options: GenerationOptions, fs: Optional[FileSystem] = None) -> RunSummary:
    """Resolve the option patterns and generate companions for every match."""
    exclude = tuple(options.exclude_suffixes) + (options.output_suffix,)
    globbed = resolve_patterns(options.patterns, exclude)
    summary = run_generation(globbed.paths, options, fs)
    summary.unmatched_patterns = globbed.unmatched_patterns
    return summary
