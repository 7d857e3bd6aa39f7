"""
Unit tests for auto_orient.logging_config module.

Tests:
- JSON formatter output
- Console formatter output
- Logging setup
- Timing utilities
- Context management
"""

import json
import logging
import sys
from io import StringIO

import pytest

from auto_orient.logging_config import (
    PACKAGE_LOGGER,
    ConsoleFormatter,
    JSONFormatter,
    LogContext,
    configure_default_logging,
    get_logger,
    log_timing,
    setup_logging,
    timed,
)


def _record(name="test", level=logging.INFO, msg="Message", exc_info=None, lineno=1):
    return logging.LogRecord(
        name=name, level=level, pathname="test.py", lineno=lineno,
        msg=msg, args=(), exc_info=exc_info,
    )



class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_format(self):
        """Test basic JSON formatting."""
        data = json.loads(JSONFormatter().format(_record(name="auto_orient.orient", msg="Orienting")))

        assert data["level"] == "INFO"
        assert data["logger"] == "auto_orient.orient"
        assert data["message"] == "Orienting"
        assert "timestamp" in data

    def test_extra_fields(self):
        """Test extra record fields are included."""
        record = _record()
        record.mesh = "bracket"
        record.n_candidates = 27

        data = json.loads(JSONFormatter().format(record))

        assert data["mesh"] == "bracket"
        assert data["n_candidates"] == 27

    def test_extra_fields_disabled(self):
        """Test extra fields can be turned off."""
        record = _record()
        record.mesh = "bracket"

        data = json.loads(JSONFormatter(include_extra=False).format(record))

        assert "mesh" not in data

    def test_unserializable_extra_stringified(self):
        """Test non-JSON values are stringified."""
        record = _record()
        record.orientation = object()

        data = json.loads(JSONFormatter().format(record))

        assert isinstance(data["orientation"], str)

    def test_location_for_warning(self):
        """Test warnings carry their source location."""
        data = json.loads(JSONFormatter().format(_record(level=logging.WARNING, lineno=42)))

        assert data["location"]["line"] == 42

    def test_no_location_for_info(self):
        """Test info records have no location."""
        data = json.loads(JSONFormatter().format(_record()))

        assert "location" not in data

    def test_exception_format(self):
        """Test exception info is formatted."""
        try:
            raise ValueError("degenerate hull")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError" in data["exception"]

    def test_unicode_message(self):
        """Test non-ASCII messages survive."""
        data = json.loads(JSONFormatter().format(_record(msg="Загрузка STL: деталь ⌀20")))

        assert "Загрузка" in data["message"]
        assert "⌀" in data["message"]


class TestConsoleFormatter:
    """Tests for ConsoleFormatter."""

    def test_package_prefix_stripped(self):
        """Test the package prefix is dropped from logger names."""
        result = ConsoleFormatter(use_colors=False).format(
            _record(name="auto_orient.orientation.orienter", msg="best orientation")
        )

        assert "INFO" in result
        assert "orientation.orienter" in result
        assert "auto_orient.orientation" not in result
        assert "best orientation" in result

    def test_extra_fields_shown(self):
        """Test extra fields are appended."""
        record = _record()
        record.unprintability = 1.23456789

        result = ConsoleFormatter(use_colors=False, show_extra=True).format(record)

        assert "unprintability=1.23" in result

    def test_extra_fields_hidden(self):
        """Test extra fields can be hidden."""
        record = _record()
        record.unprintability = 1.5

        result = ConsoleFormatter(use_colors=False, show_extra=False).format(record)

        assert "unprintability" not in result

    def test_colors_disabled(self):
        """Test no ANSI codes without colors."""
        result = ConsoleFormatter(use_colors=False).format(_record(level=logging.ERROR))

        assert "\033[" not in result

    def test_colors_enabled(self):
        """Test ANSI codes with colors."""
        result = ConsoleFormatter(use_colors=True).format(_record(level=logging.ERROR))

        assert "\033[31m" in result


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_returns_package_logger(self):
        """Test the package logger is returned."""
        logger = setup_logging(level=logging.DEBUG, console=False)

        assert logger.name == PACKAGE_LOGGER
        assert logger.propagate is False

    def test_console_handler_added(self):
        """Test console handler is attached."""
        logger = setup_logging(console=True)

        assert any(isinstance(h, logging.StreamHandler) for h in logger.handlers)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        """Test repeated setup replaces handlers."""
        setup_logging(console=True)
        logger = setup_logging(console=True)

        assert len(logger.handlers) == 1

    def test_json_file_handler(self, tmp_path):
        """Test JSON lines are written to file."""
        json_path = tmp_path / "orient.log.json"
        logger = setup_logging(json_file=json_path, console=False)
        logger.info("Oriented", extra={"mesh": "cube"})
        for handler in logger.handlers:
            handler.flush()

        data = json.loads(json_path.read_text(encoding="utf-8").strip())

        assert data["message"] == "Oriented"
        assert data["mesh"] == "cube"

    def test_level_setting(self):
        """Test log level is applied."""
        logger = setup_logging(level=logging.WARNING, console=False)

        assert logger.level == logging.WARNING


class TestGetLogger:
    """Tests for get_logger."""

    def test_returns_named_logger(self):
        """Test logger name."""
        logger = get_logger("auto_orient.batch")

        assert logger.name == "auto_orient.batch"

    def test_same_logger_returned(self):
        """Test loggers are cached by name."""
        assert get_logger("auto_orient.x") is get_logger("auto_orient.x")


class TestLogTiming:
    """Tests for log_timing context manager."""

    @staticmethod
    def _capture(name):
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        logger.addHandler(handler)
        return logger, stream

    def test_logs_start_and_complete(self):
        """Test start and completion messages."""
        logger, stream = self._capture("timing_start_complete")

        with log_timing(logger, "orient cube"):
            pass

        output = stream.getvalue()
        assert "Starting: orient cube" in output
        assert "Completed: orient cube" in output

    def test_timing_info_updated(self):
        """Test elapsed time is recorded."""
        logger, _ = self._capture("timing_info")

        with log_timing(logger, "operation") as timing_info:
            pass

        assert timing_info["elapsed_seconds"] >= 0

    def test_error_logged_and_reraised(self):
        """Test errors are logged and re-raised."""
        logger, stream = self._capture("timing_error")

        with pytest.raises(ValueError):
            with log_timing(logger, "failing operation"):
                raise ValueError("bad mesh")

        output = stream.getvalue()
        assert "ERROR: Failed: failing operation" in output
        assert "bad mesh" in output


class TestTimedDecorator:
    """Tests for timed decorator."""

    def test_function_executed(self):
        """Test the wrapped function runs."""
        logger = logging.getLogger("timed_test")
        logger.addHandler(logging.NullHandler())

        @timed(logger=logger)
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_preserves_function_name(self):
        """Test functools.wraps keeps the name."""
        @timed()
        def orient_folder():
            pass

        assert orient_folder.__name__ == "orient_folder"


class TestLogContext:
    """Tests for LogContext."""

    def test_fields_added_to_child_records(self):
        """Test context fields reach package records."""
        setup_logging(console=False)
        captured = []

        class CaptureHandler(logging.Handler):
            def emit(self, record):
                captured.append(record)

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addHandler(CaptureHandler())

        with LogContext(file="bracket.stl"):
            get_logger("auto_orient.pipeline").info("Orienting")
        get_logger("auto_orient.pipeline").info("After")

        assert captured[0].file == "bracket.stl"
        assert not hasattr(captured[1], "file")

    def test_context_current(self):
        """Test current context tracking."""
        assert LogContext.current() is None

        ctx = LogContext(mesh="cube")
        with ctx:
            assert LogContext.current() is ctx
            assert ctx.fields["mesh"] == "cube"

        assert LogContext.current() is None

    def test_nested_contexts_restore_previous(self):
        """Test nested contexts restore the outer one."""
        with LogContext(a=1) as outer:
            with LogContext(b=2):
                pass
            assert LogContext.current() is outer


class TestConfigureDefaultLogging:
    """Tests for configure_default_logging."""

    def test_info_level_default(self):
        """Test INFO level by default."""
        assert configure_default_logging(verbose=False).level == logging.INFO

    def test_debug_level_verbose(self):
        """Test DEBUG level when verbose."""
        assert configure_default_logging(verbose=True).level == logging.DEBUG
