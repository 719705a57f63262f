"""
Helpers for locating an Xcode project, reading and bumping its marketing version and building it.
"""

import glob
import logging
import os
import re

from jarvis.util import NULL_LOGGER, get_command_output, run_command

MARKETING_VERSION_PATTERN = re.compile(r"MARKETING_VERSION\s*=\s*([0-9]+\.[0-9]+\.[0-9]+)")

# Directory names which are never searched for the project file. "temp" is the default
# build folder which contains copies of the project.
SKIP_DIRECTORIES: list[str] = ["Resources", "temp"]

RELEASE_PRODUCTS = os.path.join("Build", "Products", "Release")

# The steps of the whole development and distribution process, in order. Each entry consists of
# the step id, the title and a short description.
ROADMAP: list[tuple[str, str, str]] = [
    ("setup", "Setup", "configure the code signing environment"),
    ("version", "Version", "show or bump the version of the app"),
    ("build", "Build", "compile the sources into the app bundle"),
    ("codesign", "Codesign", "sign the app to ensure its integrity"),
    ("package", "Package", "create the DMG installer"),
    ("notarize", "Notarize", "let Apple verify the app (optional)"),
    ("distribute", "Distribute", "upload the installer or hand it out directly"),
]

NEXT_STEP_HINTS: dict[str, str] = {
    "setup": "show the version: jarvis xcode version, or build right away: jarvis xcode build",
    "version": "build the app: jarvis xcode build",
    "build": "sign the app: jarvis xcode codesign --identity ID",
    "codesign": "create the installer: jarvis xcode package",
    "package": "notarize the app or distribute it directly",
    "notarize": "upload the installer or publish a download link",
    "distribute": "the distribution process is complete",
}


class XcodeError(Exception):
    """
    Raised by the project helpers. The ``code`` is used as the exit status of the command line
    interface: 1 - project not found, 2 - version not found, 3 - version cannot be incremented,
    4 - project file cannot be written.
    """

    PROJECT_NOT_FOUND = 1
    VERSION_NOT_FOUND = 2
    VERSION_INVALID = 3
    WRITE_FAILED = 4

    def __init__(self, message: str, code: int = 1):
        super().__init__(message)
        self.code = code


def find_pbxproj(root: str) -> str:
    """
    Searches the ``root`` folder and its sub folders up to two levels deep for a ``.pbxproj`` file
    and returns the first one that is found. Folders whose path contains "Resources" or "temp" are
    skipped.

    :raises XcodeError: if there is no such file.
    """
    root = os.path.abspath(root)
    for dirpath, dirnames, filenames in os.walk(root):
        relative = os.path.relpath(dirpath, root)
        depth = 0 if relative == "." else relative.count(os.sep) + 1
        if depth >= 2:
            dirnames[:] = []

        dirnames[:] = sorted(
            name for name in dirnames
            if not any(skip in os.path.join(relative, name) for skip in SKIP_DIRECTORIES)
        )

        for filename in sorted(filenames):
            if filename.endswith(".pbxproj"):
                return os.path.join(dirpath, filename)

    raise XcodeError("no .pbxproj project file found", XcodeError.PROJECT_NOT_FOUND)


def read_marketing_version(path: str) -> str:
    """
    Returns the first MARKETING_VERSION (in the form x.y.z) defined in the project file ``path``.

    :raises XcodeError: if the file cannot be read or does not define a version.
    """
    try:
        with open(path, encoding="utf-8") as file:
            content = file.read()
    except OSError as exc:
        raise XcodeError(f"cannot read project file: {exc}", XcodeError.VERSION_NOT_FOUND)

    match = MARKETING_VERSION_PATTERN.search(content)
    if match is None:
        raise XcodeError("MARKETING_VERSION not found", XcodeError.VERSION_NOT_FOUND)

    return match.group(1)


def increment_version(version: str) -> str:
    """
    Increments the patch number of the given ``version`` string, e.g. "1.2.3" becomes "1.2.4".

    :raises XcodeError: if the version does not consist of exactly three parts or the patch
        number is not an integer.
    """
    parts = version.split(".")
    if len(parts) != 3:
        raise XcodeError(
            f'invalid version "{version}", expected the format x.y.z', XcodeError.VERSION_INVALID
        )

    try:
        patch = int(parts[2])
    except ValueError:
        raise XcodeError(
            f'cannot parse the patch number of version "{version}"', XcodeError.VERSION_INVALID
        )

    parts[2] = str(patch + 1)
    return ".".join(parts)


def update_marketing_version(path: str, old: str, new: str) -> None:
    """
    Replaces every occurrence of ``MARKETING_VERSION = old`` in the project file ``path`` with
    ``MARKETING_VERSION = new``.
    """
    try:
        with open(path, encoding="utf-8") as file:
            content = file.read()

        content = content.replace(f"MARKETING_VERSION = {old}", f"MARKETING_VERSION = {new}")
        with open(path, mode="w", encoding="utf-8") as file:
            file.write(content)
    except OSError as exc:
        raise XcodeError(f"cannot write project file: {exc}", XcodeError.WRITE_FAILED)


def detect_project(cwd: str) -> tuple[str, str]:
    """
    Returns the path of the Xcode workspace or project in the folder ``cwd`` together with its kind,
    which is either "workspace" or "project". A workspace is preferred over a project.

    :raises XcodeError: if the folder contains neither.
    """
    workspaces = sorted(glob.glob(os.path.join(cwd, "*.xcworkspace")))
    if workspaces:
        return workspaces[0], "workspace"

    projects = sorted(glob.glob(os.path.join(cwd, "*.xcodeproj")))
    if projects:
        return projects[0], "project"

    raise XcodeError("no .xcodeproj or .xcworkspace found", XcodeError.PROJECT_NOT_FOUND)


def parse_schemes(output: str) -> list[str]:
    """
    Returns the scheme names listed in the output of ``xcodebuild -list``. These are the lines after
    "Schemes:" up to the next empty line.
    """
    schemes: list[str] = []
    in_schemes = False
    for line in output.splitlines():
        line = line.strip()
        if line == "Schemes:":
            in_schemes = True
            continue

        if not in_schemes:
            continue

        if line == "":
            break

        if ":" not in line:
            schemes.append(line)

    return schemes


def list_schemes(project: str, kind: str, logger: logging.Logger = NULL_LOGGER) -> list[str]:
    output = get_command_output("xcodebuild", f"-{kind}", project, "-list", logger=logger)
    return parse_schemes(output)


def detect_scheme(cwd: str, logger: logging.Logger = NULL_LOGGER) -> str:
    """
    Returns the first scheme of the project in ``cwd`` or an empty string if there is no project or
    it has no schemes.
    """
    try:
        project, kind = detect_project(cwd)
    except XcodeError:
        return ""

    schemes = list_schemes(project, kind, logger=logger)
    return schemes[0] if schemes else ""


def build_arguments(
    project: str,
    kind: str,
    scheme: str,
    build_path: str,
    arch: str = "universal",
    verbose: bool = False,
) -> list[str]:
    """
    Returns the xcodebuild arguments (without the "xcodebuild" itself and without the final action)
    for a Release build of ``scheme``. The "universal" ``arch`` builds for both x86_64 and arm64.
    """
    args = [
        f"-{kind}", project,
        "-scheme", scheme,
        "-configuration", "Release",
        "-derivedDataPath", build_path,
        "-destination", "generic/platform=macOS",
    ]
    if arch == "universal":
        args.append("ARCHS=x86_64 arm64")
    else:
        args.append(f"ARCHS={arch}")
    args.append("ONLY_ACTIVE_ARCH=NO")

    if not verbose:
        args.append("-quiet")

    return args


def build(
    project: str,
    kind: str,
    scheme: str,
    build_path: str,
    arch: str = "universal",
    verbose: bool = False,
    clean: bool = True,
    logger: logging.Logger = NULL_LOGGER,
) -> None:
    """
    Builds the given ``scheme`` with xcodebuild, optionally running "clean" first.

    :raises CommandError: if one of the xcodebuild invocations fails.
    """
    args = build_arguments(project, kind, scheme, build_path, arch=arch, verbose=verbose)
    if clean:
        run_command(["xcodebuild", *args, "clean"], "clean", verbose=verbose, logger=logger)

    run_command(["xcodebuild", *args, "build"], "build", verbose=verbose, logger=logger)


def app_path(build_path: str, scheme: str) -> str:
    """
    Returns the path of the app bundle of ``scheme``. If the ``build_path`` does not already point
    into the build products, the Release products folder is appended.
    """
    if "/Build/Products/" in build_path:
        return os.path.join(build_path, f"{scheme}.app")

    return os.path.join(build_path, RELEASE_PRODUCTS, f"{scheme}.app")


def search_app_paths(scheme: str, root: str = ".") -> list[str]:
    """
    Looks for the app bundle of ``scheme`` in the usual build folders below ``root`` and then anywhere
    below ``root`` (hidden folders excluded). Returns at most 20 paths.
    """
    name = f"{scheme}.app"
    candidates = [
        os.path.join(root, "temp", "Build", "Products", "Release", name),
        os.path.join(root, "temp", "Build", "Products", "Debug", name),
        os.path.join(root, "Build", "Products", "Release", name),
        os.path.join(root, "Build", "Products", "Debug", name),
        os.path.join(root, "build", "Release", name),
        os.path.join(root, "build", "Debug", name),
        os.path.join(root, "DerivedData", "Build", "Products", "Release", name),
        os.path.join(root, "DerivedData", "Build", "Products", "Debug", name),
    ]
    found = [path for path in candidates if os.path.isdir(path)]

    for dirpath, dirnames, _ in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        if name in dirnames:
            path = os.path.join(dirpath, name)
            if os.path.normpath(path) not in [os.path.normpath(p) for p in found]:
                found.append(path)

    return found[:20]


def next_step_hint(step: str) -> str:
    return NEXT_STEP_HINTS.get(step, "")
