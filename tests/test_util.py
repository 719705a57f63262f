import io
import logging
import sys

import pytest

from jarvis.cli.utils import mask_secret, read_content
from jarvis.util import (
    NULL_LOGGER,
    AnsiSanitizingFormatter,
    CommandError,
    command_exists,
    create_logger,
    format_bytes,
    get_command_output,
    get_version,
    parse_int,
    run_command,
    truncate_string,
)


def test_get_version():
    version = get_version()
    assert isinstance(version, str)
    assert version.count(".") == 2


def test_format_bytes():
    assert format_bytes(0) == "0 B"
    assert format_bytes(1023) == "1023 B"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(1024 ** 2) == "1.0 MB"
    assert format_bytes(3 * 1024 ** 3) == "3.0 GB"


def test_truncate_string():
    assert truncate_string("short", 10) == "short"
    assert truncate_string("a very long process name", 10) == "a very ..."
    assert len(truncate_string("x" * 50, 20)) == 20


def test_parse_int():
    assert parse_int(" 42 ") == 42
    assert parse_int("abc") == 0
    assert parse_int("abc", default=-1) == -1
    assert parse_int(None, default=7) == 7


def test_command_exists():
    assert not command_exists("jarvis-command-that-does-not-exist")


def test_get_command_output_missing_tool_returns_empty_string():
    assert get_command_output("jarvis-command-that-does-not-exist", "--help") == ""


def test_get_command_output_failing_tool_returns_empty_string():
    assert get_command_output(sys.executable, "-c", "import sys; sys.exit(3)") == ""


def test_get_command_output_strips_output():
    assert get_command_output(sys.executable, "-c", "print('  hello  ')") == "hello"


def test_run_command_missing_tool():
    with pytest.raises(CommandError) as info:
        run_command(["jarvis-command-that-does-not-exist"], "building the app")

    assert str(info.value).startswith("building the app failed")
    assert "not installed" in info.value.reason


def test_run_command_exit_status():
    with pytest.raises(CommandError) as info:
        run_command([sys.executable, "-c", "import sys; sys.exit(65)"], "build")

    assert info.value.reason == "exit status 65"


def test_create_logger_without_options_is_null_logger():
    assert create_logger() is NULL_LOGGER


def test_create_logger_debug_stream():
    stream = io.StringIO()
    logger = create_logger(debug=True, stream=stream)
    logger.debug("hello from the test")

    assert "hello from the test" in stream.getvalue()


def test_create_logger_file_strips_ansi(tmp_path):
    log_path = tmp_path / "jarvis.log"
    logger = create_logger(log_path=str(log_path))
    logger.debug("\x1b[31mRed text\x1b[0m")

    content = log_path.read_text()
    assert "Red text" in content
    assert "\x1b[" not in content


def test_ansi_sanitizing_formatter():
    """
    Test that AnsiSanitizingFormatter correctly removes ANSI escape sequences
    from log messages while preserving the rest of the message content.
    """
    formatter = AnsiSanitizingFormatter("%(message)s")

    test_cases = [
        ("\x1b[31mRed text\x1b[0m", "Red text"),
        ("\x1b[3m\x1b[1mBold Italic\x1b[22m\x1b[23m", "Bold Italic"),
        ("\x1b[2K\x1b[1ACleared line\x1b[0m", "Cleared line"),
        ("Plain text message", "Plain text message"),
        ("", ""),
    ]

    for ansi_input, expected_output in test_cases:
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="",
            lineno=0,
            msg=ansi_input,
            args=(),
            exc_info=None
        )
        assert formatter.format(record) == expected_output


def test_mask_secret():
    assert mask_secret("") == ""
    assert mask_secret("root") == "****"
    assert mask_secret("hunter2", visible=2) == "hu*****"
    # at least one character stays hidden
    assert mask_secret("ab", visible=5) == "a*"


def test_read_content_file_takes_precedence(tmp_path):
    path = tmp_path / "nginx.conf"
    path.write_text("from file")

    assert read_content(str(path), "from option") == "from file"
    assert read_content("", "from option") == "from option"

    with pytest.raises(OSError):
        read_content(str(tmp_path / "missing.conf"), "")
