"""
Utility methods
"""

import logging
import os
import pathlib
import platform
import re
import shutil
import subprocess
import sys
import typing as t

# Contains a human readable string of the operating system name, e.g. "Darwin" or "Linux"
OS_NAME: str = platform.system()
IS_MACOS: bool = OS_NAME == "Darwin"
# Contains the absolute string path to the parent directory of this file
PATH = pathlib.Path(__file__).parent.absolute()
VERSION_PATH = os.path.join(PATH, "VERSION")

NULL_LOGGER = logging.Logger("NULL")
NULL_LOGGER.addHandler(logging.NullHandler())

LOG_FORMAT = "%(asctime)s - %(message)s"


class AnsiSanitizingFormatter(logging.Formatter):
    """
    Custom logging formatter that removes ANSI escape codes from log messages.

    This formatter is designed to be used with file handlers to ensure that
    log files contain clean text without ANSI color codes and formatting,
    while preserving the original formatting for console output.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Regex pattern to match ANSI escape sequences
        self.ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

    def format(self, record):
        formatted_message = super().format(record)
        return self.ansi_escape.sub('', formatted_message)


def create_logger(
    name: str = "jarvis",
    debug: bool = False,
    log_path: t.Optional[str] = None,
    stream: t.TextIO = None,
) -> logging.Logger:
    """
    Creates the logger which is handed down to all the components that are used by a single
    invocation of the command line interface.

    :param name: The name of the logger.
    :param debug: If True, all DEBUG messages are written to the given ``stream`` (stderr by default).
    :param log_path: Optional path of a log file. The file will receive the same messages, but
        without any ANSI escape sequences.

    :returns: A logging.Logger instance. If neither debug nor log_path is given, this is a logger
        without any effect.
    """
    if not debug and log_path is None:
        return NULL_LOGGER

    logger = logging.Logger(name=name, level=logging.DEBUG)
    if debug:
        stream_handler = logging.StreamHandler(stream or sys.stderr)
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stream_handler)

    if log_path is not None:
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(AnsiSanitizingFormatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_version():
    with open(VERSION_PATH) as file:
        return file.read().replace(" ", "").replace("\n", "")


class Singleton(type):
    """
    This is metaclass definition, which implements the singleton pattern. The objective is that whatever
    class uses this as a metaclass does not work like a traditional class anymore, where upon calling the
    constructor a NEW instance is returned. This class overwrites the constructor behavior to return the
    same instance upon calling the constructor.

    **USAGE**
    .. code-block:: python
        class MySingleton(metaclass=Singleton):
            pass

        a = MySingleton()
        b = MySingleton()
        print(a is b) # true
    """

    _instances = {}

    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            cls._instances[cls] = super(Singleton, cls).__call__(*args, **kwargs)
        return cls._instances[cls]


class CommandError(Exception):
    """
    Raised by :func:`run_command` when an external tool fails or cannot be found. The message
    always starts with the human readable description of the step that failed.
    """

    def __init__(self, description: str, reason: str):
        super().__init__(f"{description} failed: {reason}")
        self.description = description
        self.reason = reason


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def get_command_output(*args: str, logger: logging.Logger = NULL_LOGGER) -> str:
    """
    Executes the command given by ``args`` and returns its stripped standard output.

    All the reporting commands are best effort: If the tool does not exist on the current system
    or exits with a non-zero status, an empty string is returned and the caller simply skips the
    corresponding section of its output.
    """
    logger.debug(f"running: {' '.join(args)}")
    try:
        completed = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug(f"command failed: {exc}")
        return ""

    return completed.stdout.decode("utf-8", errors="replace").strip()


def run_command(
    args: list[str],
    description: str,
    verbose: bool = False,
    logger: logging.Logger = NULL_LOGGER,
) -> None:
    """
    Executes the command given by ``args`` as one step of a longer pipeline (build, codesign, ...).
    In ``verbose`` mode the output of the tool is passed through to the terminal, otherwise it is
    discarded.

    :raises CommandError: if the tool cannot be started or exits with a non-zero status.
    """
    logger.debug(f"{description}: {' '.join(args)}")
    output = None if verbose else subprocess.DEVNULL
    try:
        subprocess.run(args, stdout=output, stderr=output, check=True)
    except FileNotFoundError:
        raise CommandError(description, f'"{args[0]}" is not installed')
    except subprocess.CalledProcessError as exc:
        raise CommandError(description, f"exit status {exc.returncode}")


def format_bytes(value: int) -> str:
    """
    Formats the given number of bytes as a human readable string using 1024 based units,
    e.g. ``1536`` -> ``"1.5 KB"``.
    """
    unit = 1024
    if value < unit:
        return f"{value} B"

    div, exp = unit, 0
    n = value // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit

    return f"{value / div:.1f} {'KMGTPE'[exp]}B"


def truncate_string(string: str, max_length: int) -> str:
    if len(string) <= max_length:
        return string
    return string[: max_length - 3] + "..."


def parse_int(value: str, default: int = 0) -> int:
    try:
        return int(value.strip())
    except (ValueError, AttributeError):
        return default
