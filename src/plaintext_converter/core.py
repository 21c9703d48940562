"""Conversion pipeline and the service that wraps it with diagnostics and file handling."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Sequence

from .blockquote import convert_blockquotes
from .config import AppConfig
from .context import ConversionContext, ConversionFailure
from .entities import TRIM_CHARS, collapse_whitespace, normalize_entities, strip_tags, wrap
from .logging import BatchSummary, RunLogEntry, RunLogger, StageTimings, append_summary_row
from .models import ConversionOptions, ConversionResult
from .pre import convert_pre
from .rules import TagRewriter
from .utils import RunPaths, atomic_write, ensure_run_paths, generate_run_id, iter_html_files, size_within_limit

logger = logging.getLogger(__name__)


def render_fragment(text: str, options: ConversionOptions, context: ConversionContext) -> str:
    """Run every pass over ``text``; quoted blocks recurse back into this function."""

    rewriter = TagRewriter(options, context.links, context)
    text = convert_blockquotes(text, options, context, render_fragment)
    text = convert_pre(text, rewriter, context)
    context.ensure_deadline("static rules")
    text = rewriter.apply_static(text)
    text = rewriter.apply_callbacks(text)
    context.ensure_deadline("tag callbacks")
    text = strip_tags(text)
    text = normalize_entities(text)
    text = collapse_whitespace(text)
    return wrap(text, options.width)


def render_document(html: str, options: ConversionOptions, context: ConversionContext) -> str:
    text = render_fragment(html.strip(TRIM_CHARS), options, context)
    return text + context.links.footnote()


def _label(message: str, correlation_id: str | None) -> str:
    if correlation_id:
        return f"{message} ({correlation_id})"
    return message


@dataclass(slots=True)
class FileConversionResult:
    run_id: str
    source: Path
    output_path: Path
    result: ConversionResult


@dataclass(slots=True)
class BatchConversionResult:
    run_id: str
    runs: list[FileConversionResult]
    summary: BatchSummary


class ConversionService:
    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def default_options(self) -> ConversionOptions:
        return self._config.default_options

    def convert(
        self,
        html: str,
        options: ConversionOptions | None = None,
        correlation_id: str | None = None,
    ) -> str:
        """Convert ``html`` to plaintext; returns an empty string when conversion fails."""

        return self.convert_result(html, options, correlation_id).text

    def convert_result(
        self,
        html: str,
        options: ConversionOptions | None = None,
        correlation_id: str | None = None,
    ) -> ConversionResult:
        opts = options or self.default_options
        limits = self._config.runtime.limits
        context = ConversionContext.start(
            timeout_s=limits.convert_timeout_s,
            max_depth=limits.max_quote_depth,
        )
        start = time.perf_counter()
        try:
            text = render_document(html, opts, context)
        except ConversionFailure as exc:
            return self._failed(exc, context, start, correlation_id)
        except Exception as exc:
            failure = ConversionFailure("INTERNAL", str(exc))
            failure.__cause__ = exc
            return self._failed(failure, context, start, correlation_id)

        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(_label("Successfully converted HTML to plaintext", correlation_id))
        return ConversionResult(text=text, links=context.links.urls, elapsed_ms=elapsed)

    def _failed(
        self,
        failure: ConversionFailure,
        context: ConversionContext,
        start: float,
        correlation_id: str | None,
    ) -> ConversionResult:
        elapsed = (time.perf_counter() - start) * 1000
        logger.error(
            "%s: %s - %s",
            _label("Convert HTML to plaintext failed", correlation_id),
            failure.code,
            failure,
        )
        return ConversionResult(text="", links=context.links.urls, error=failure, elapsed_ms=elapsed)

    def convert_file(
        self,
        path: Path,
        run_paths: RunPaths,
        *,
        options: ConversionOptions | None = None,
        run_logger: RunLogger | None = None,
        output_path: Path | None = None,
    ) -> FileConversionResult:
        run_logger = run_logger or RunLogger(run_paths.log_file)
        output_path = output_path or run_paths.output_for(path)
        read_start = time.perf_counter()
        try:
            html = self._read_source(path)
        except ConversionFailure as exc:
            result = ConversionResult(text="", error=exc)
            self._append_log(run_logger, run_paths, path, output_path, result, StageTimings(0, 0, 0))
            raise
        read_ms = (time.perf_counter() - read_start) * 1000

        result = self.convert_result(html, options, correlation_id=str(path))
        write_ms = 0.0
        if result.ok:
            write_start = time.perf_counter()
            atomic_write(output_path, result.text)
            write_ms = (time.perf_counter() - write_start) * 1000
        self._append_log(
            run_logger,
            run_paths,
            path,
            output_path,
            result,
            StageTimings(read_ms=read_ms, convert_ms=result.elapsed_ms, write_ms=write_ms),
        )
        return FileConversionResult(run_id=run_paths.run_id, source=path, output_path=output_path, result=result)

    def _read_source(self, path: Path) -> str:
        if not path.exists():
            raise ConversionFailure("NOT_FOUND", f"Source file does not exist: {path}")
        if not size_within_limit(path, self._config.runtime.limits.max_input_kb):
            raise ConversionFailure("SIZE_LIMIT", f"File exceeds configured limit: {path.name}")
        return path.read_text(encoding="utf-8", errors="replace")

    def _append_log(
        self,
        run_logger: RunLogger,
        run_paths: RunPaths,
        path: Path,
        output_path: Path,
        result: ConversionResult,
        timings: StageTimings,
    ) -> None:
        run_logger.append(
            RunLogEntry(
                run_id=run_paths.run_id,
                source=str(path),
                status="success" if result.ok else "failure",
                error_code=result.error.code if result.error else None,
                timings=timings,
                output_path=str(output_path) if result.ok else "",
                link_count=len(result.links),
                size_bytes=path.stat().st_size if path.exists() else 0,
            )
        )

    def batch_convert(
        self,
        inputs: Sequence[Path],
        *,
        options: ConversionOptions | None = None,
        parallelism: int | None = None,
    ) -> BatchConversionResult:
        paths = list(iter_html_files(inputs))
        run_id = generate_run_id("batch")
        run_paths = ensure_run_paths(self._config, run_id)
        run_logger = RunLogger(run_paths.log_file)
        summary = BatchSummary(total=len(paths))
        parallelism = max(1, parallelism or self._config.runtime.parallelism)

        # Claimed up front, in input order, so duplicate stems map to stable names.
        jobs = [(path, run_paths.output_for(path)) for path in paths]

        def convert_one(path: Path, output_path: Path) -> FileConversionResult:
            return self.convert_file(
                path,
                run_paths,
                options=options,
                run_logger=run_logger,
                output_path=output_path,
            )

        runs: list[FileConversionResult] = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=parallelism) as executor:
            future_map = {executor.submit(convert_one, path, output): path for path, output in jobs}
            for future in concurrent.futures.as_completed(future_map):
                try:
                    run = future.result()
                except ConversionFailure as exc:
                    summary.record_failure(exc.code)
                    continue
                except OSError as exc:
                    logger.error("Convert HTML to plaintext failed (%s): IO_ERROR - %s", future_map[future], exc)
                    summary.record_failure("IO_ERROR")
                    continue
                if run.result.error is not None:
                    summary.record_failure(run.result.error.code)
                else:
                    summary.successes += 1
                runs.append(run)

        runs.sort(key=lambda run: str(run.source))
        if paths:
            summary_path = self._config.runtime.output_dir / self._config.runtime.summary_csv
            append_summary_row(summary_path, summary.as_row(run_id))
        return BatchConversionResult(run_id=run_id, runs=runs, summary=summary)


@lru_cache(maxsize=1)
def _default_service() -> ConversionService:
    return ConversionService()


def convert(html: str, options: ConversionOptions | None = None, correlation_id: str | None = None) -> str:
    return _default_service().convert(html, options, correlation_id)


__all__ = [
    "BatchConversionResult",
    "ConversionFailure",
    "ConversionService",
    "FileConversionResult",
    "convert",
    "render_document",
    "render_fragment",
]
