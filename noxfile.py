import shutil
from pathlib import Path
from typing import List

import nox

nox.options.default_venv_backend = "uv"


# Supported Python versions for testing
PYTHON_VERSIONS = ["3.10", "3.11", "3.12"]


@nox.session(python=PYTHON_VERSIONS)
def test(session: nox.Session) -> None:
    """Run the test suite across multiple Python versions."""
    session.install(".[test]")
    session.run("pytest", "tests/", "-v")


@nox.session(python="3.10")
def lint(session: nox.Session) -> None:
    """Run linting with ruff."""
    session.install(".[dev]")
    session.run("ruff", "check", "jarvis/", "tests/")


@nox.session(python="3.10")
def build(session: nox.Session) -> None:
    """Build package and test the wheel using uv."""
    dist_dir = Path("dist")

    # Clean old distributions
    if dist_dir.exists():
        shutil.rmtree(dist_dir)
        session.log("Purged dist folder")

    session.run("uv", "build", "--python=3.10")

    wheel_files = list(dist_dir.glob("*.whl"))
    if not wheel_files:
        raise FileNotFoundError("No wheel file found in dist/")

    wheel_path = wheel_files[0]
    session.log(f"Found wheel: {wheel_path}")

    # Test installation and functionality
    session.install(str(wheel_path))
    session.run("jarvis", "--version")
    session.run("jarvis", "ping")


@nox.session(python="3.10")
def clean(session: nox.Session) -> None:
    """Clean build artifacts and cache files."""
    dirs_to_clean: List[Path] = [
        Path("dist"),
        Path("build"),
        Path(".pytest_cache"),
        Path(".ruff_cache"),
    ]

    for dir_path in dirs_to_clean:
        if dir_path.exists():
            if dir_path.is_dir():
                shutil.rmtree(dir_path)
            else:
                dir_path.unlink()
            session.log(f"Removed {dir_path}")

    # Clean __pycache__ directories recursively
    current_path = Path(".")
    for pycache_dir in current_path.rglob("__pycache__"):
        shutil.rmtree(pycache_dir)
        session.log(f"Removed {pycache_dir}")
