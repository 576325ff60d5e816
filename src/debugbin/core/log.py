"""Logger built on logfire with console and file sinks."""

from __future__ import annotations

import contextlib
import sys
from abc import abstractmethod
from pathlib import Path
from typing import Any

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from debugbin.core.base import BaseConfig

_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to the configured Logger.

    Every method is a no-op until setup_logger() has run, so modules
    can log at import time or from tests without configuration.
    """
    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                if name == "span":
                    return contextlib.nullcontext()
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


# Imported everywhere as `from debugbin.core.log import logger`
logger = _LoggerProxy()

# Level names to OpenTelemetry severity numbers (lower is noisier)
LEVELS = {
    'spew': logs_pb2.SEVERITY_NUMBER_TRACE,
    'trace': logs_pb2.SEVERITY_NUMBER_TRACE3,
    'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,
    'info': logs_pb2.SEVERITY_NUMBER_INFO,
    'warn': logs_pb2.SEVERITY_NUMBER_WARN,
    'error': logs_pb2.SEVERITY_NUMBER_ERROR,
    'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,
}


def level_name(level_num: int) -> str:
    """Map a severity number back to the closest level name."""
    for name in ('fatal', 'error', 'warn', 'info', 'debug', 'trace'):
        if level_num >= LEVELS[name]:
            return name
    return 'spew'


class LevelFilteringExporter(SpanExporter):
    """Drops spans below a minimum level before forwarding them."""

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        self._exporter = exporter
        self._min_severity = LEVELS.get(
            (min_level or 'info').lower(), logs_pb2.SEVERITY_NUMBER_INFO
        )

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        kept = [
            span for span in spans
            if (span.attributes or {}).get(
                'logfire.level_num', logs_pb2.SEVERITY_NUMBER_INFO
            ) >= self._min_severity
        ]
        if kept:
            return self._exporter.export(kept)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


class Sink(BaseConfig):
    """One log output destination.

    close() is reached through the BaseCloseable cascade, so a sink
    never needs to be shut down by hand.
    """

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Minimum level for this sink; inherits Logger.level when "
            "unset. Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )

    _processor: Any = PrivateAttr(default=None)

    @abstractmethod
    def create_processor(self, log_root: Path, run_name: str):
        """Return an OpenTelemetry span processor, or None."""

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Human-readable console output rendered by logfire."""

    verbose: bool = Field(
        default=False,
        description="Show span attributes alongside messages"
    )
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never"
    )
    stream: str = Field(
        default="stderr",
        description=(
            "Stream to write to: stderr or stdout. stderr keeps "
            "stdout free for printed binary paths"
        )
    )

    def create_processor(self, log_root: Path, run_name: str):
        # Console output is configured through logfire.configure()
        return None

    def options(self):
        from logfire import ConsoleOptions

        return ConsoleOptions(
            # logfire has no spew level
            min_log_level={"spew": "trace"}.get(self.level, self.level or "info"),
            verbose=self.verbose,
            colors=self.colors,
            include_timestamps=True,
            output=sys.stdout if self.stream == "stdout" else sys.stderr,
        )


class FileSink(Sink):
    """Plain-text (or JSON) log file."""

    enabled: bool = Field(
        default=False,
        description="Enable file logging"
    )
    path: str = Field(
        default="{log_root}/{run_name}/debugbin.log",
        description="Log file path template"
    )
    escape_special_characters: bool = Field(
        default=False,
        description="Escape newlines and tabs so entries stay on one line"
    )
    format_template: str | None = Field(
        default=None,
        description=(
            "str.format template with timestamp, level, message, "
            "location, function fields; None writes span JSON"
        )
    )

    _file: Any = PrivateAttr(default=None)

    @staticmethod
    def _escape(text: str) -> str:
        return (text
            .replace('\\', '\\\\')
            .replace('\n', '\\n')
            .replace('\r', '\\r')
            .replace('\t', '\\t')
        )

    def _format_span(self, span) -> str:
        if not self.format_template:
            import os
            return span.to_json() + os.linesep

        from datetime import UTC, datetime

        attrs = span.attributes or {}
        filepath = attrs.get("code.filepath", "")
        message = attrs.get("logfire.msg", span.name)
        if self.escape_special_characters:
            message = self._escape(message)

        try:
            formatted = self.format_template.format(
                timestamp=datetime.fromtimestamp(
                    span.start_time / 1e9, tz=UTC
                ),
                level=level_name(attrs.get(
                    "logfire.level_num", logs_pb2.SEVERITY_NUMBER_INFO
                )),
                message=message,
                location=(
                    f"{filepath}:{attrs.get('code.lineno', '')}"
                    if filepath else ""
                ),
                function=attrs.get("code.function", ""),
            )
        except KeyError as e:
            return f"ERROR: Invalid template field {e}\n"

        # Keyword arguments passed to logger calls
        extra = {
            k: v for k, v in attrs.items()
            if not k.startswith((
                'code.', 'logfire.', 'otel.', 'telemetry.', 'service.',
                'process.',
            ))
        }
        if extra:
            formatted += " │ " + ' '.join(
                f"{k}={v!r}" for k, v in sorted(extra.items())
            )
        return formatted + '\n'

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(
            self.path.format(log_root=log_root, run_name=run_name)
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered; stays open until close()
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        exporter = ConsoleSpanExporter(
            out=self._file,
            formatter=self._format_span
        )
        return BatchSpanProcessor(
            LevelFilteringExporter(exporter, self.level)
        )

    def close(self):
        # Processor first so pending spans reach the file
        super().close()
        if self._file and not self._file.closed:
            self._file.flush()
            self._file.close()


class Logger(BaseConfig):
    """Logger configuration plus the runtime logging methods."""

    level: str = Field(
        default="info",
        description=(
            "Default level for all sinks. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    console: ConsoleSink = Field(
        default_factory=ConsoleSink,
        description="Console output configuration"
    )
    file: FileSink = Field(
        default_factory=FileSink,
        description="File logging configuration"
    )

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        for sink in [self.console, self.file]:
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        """Create sink processors and configure logfire.

        Args:
            log_root: Root directory for log files
            run_name: Name of this run, used in log paths
        """
        import logfire

        for sink in [self.console, self.file]:
            if sink.enabled:
                sink._processor = sink.create_processor(log_root, run_name)

        processors = [
            sink._processor
            for sink in [self.console, self.file]
            if sink.enabled and sink._processor
        ]

        logfire.configure(
            service_name=f"debugbin-{run_name}",
            send_to_logfire=False,
            console=self.console.options() if self.console.enabled else False,
            additional_span_processors=processors or None,
        )

    def info(self, msg: str, **kwargs):
        import logfire
        logfire.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        import logfire
        logfire.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs):
        import logfire
        logfire.log(
            level=LEVELS['trace'],
            msg_template=msg,
            attributes=kwargs or None
        )

    def spew(self, msg: str, **kwargs):
        """Below trace: raw build tool output lines."""
        import logfire
        logfire.log(
            level=LEVELS['spew'],
            msg_template=msg,
            attributes=kwargs or None
        )

    def warn(self, msg: str, **kwargs):
        import logfire
        logfire.warn(msg, **kwargs)

    warning = warn

    def error(self, msg: str, **kwargs):
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Context manager that groups the logs emitted inside it."""
        import logfire
        return logfire.span(msg, **kwargs)

    def log(self, level: str, msg: str, **kwargs):
        if level.lower() in ('spew', 'trace'):
            getattr(self, level.lower())(msg, **kwargs)
            return
        import logfire
        logfire.log(level.lower(), msg, attributes=kwargs or None)


def setup_logger(
    log_root: Path,
    run_name: str,
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    level: str = "info",
) -> Logger:
    """Install a new global Logger and return it.

    Config does this after loading; tests call it directly.
    """
    global _current_logger

    if _current_logger is not None:
        _current_logger.close()

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
    )
    _current_logger.setup(log_root, run_name)
    return _current_logger
