"""
Code signing of macOS app bundles.
"""

import logging
import os

from jarvis.util import NULL_LOGGER, get_command_output, run_command

IDENTITY_KINDS: dict[str, str] = {
    "Developer ID Application": "distribution - may be distributed publicly",
    "Apple Development": "development - for testing only",
    "Mac Developer": "development - for testing only",
}

# The components of the Sparkle update framework have to be signed individually and from the
# inside out, before the app bundle itself.
SPARKLE_COMPONENTS: list[str] = [
    "Versions/B/Resources/Autoupdate.app/Contents/MacOS/Autoupdate",
    "Versions/B/Resources/Autoupdate.app",
    "Versions/B/Sparkle",
    "Sparkle",
]

PLIST_KEYS: dict[str, str] = {
    "CFBundleShortVersionString": "version",
    "CFBundleVersion": "build",
    "CFBundleIdentifier": "bundle_id",
}


def identity_kind(name: str) -> str:
    for prefix, kind in IDENTITY_KINDS.items():
        if prefix in name:
            return kind

    return ""


def parse_identities(output: str) -> list[tuple[str, str]]:
    """
    Returns the code signing identities in the output of ``security find-identity -v -p codesigning``
    as a list of ``(name, kind)`` tuples. Only Developer ID, Apple Development and Mac Developer
    certificates are considered, the name is the quoted part of the line.
    """
    identities: list[tuple[str, str]] = []
    for line in output.splitlines():
        line = line.strip()
        if not identity_kind(line):
            continue

        start, end = line.find('"'), line.rfind('"')
        if start == -1 or start >= end:
            continue

        name = line[start + 1:end]
        identities.append((name, identity_kind(name)))

    return identities


def count_identities(output: str) -> tuple[int, int]:
    """
    Returns the number of development and distribution certificates in the output of
    ``security find-identity``.
    """
    development, distribution = 0, 0
    for name, _ in parse_identities(output):
        if "Developer ID Application" in name:
            distribution += 1
        else:
            development += 1

    return development, distribution


def parse_plist_values(output: str) -> dict[str, str]:
    """
    Extracts the version, the build number and the bundle identifier from the output of
    ``plutil -p Info.plist``, whose lines look like ``"CFBundleVersion" => "42"``.
    """
    values: dict[str, str] = {}
    for line in output.splitlines():
        parts = line.split('"')
        if len(parts) < 4:
            continue

        key = PLIST_KEYS.get(parts[1])
        if key is not None and key not in values:
            values[key] = parts[3]

    return values


def read_app_info(path: str, logger: logging.Logger = NULL_LOGGER) -> dict[str, str]:
    info_path = os.path.join(path, "Contents", "Info.plist")
    if not os.path.exists(info_path):
        return {}

    return parse_plist_values(get_command_output("plutil", "-p", info_path, logger=logger))


def sparkle_components(path: str) -> list[str]:
    """
    Returns the paths of the Sparkle framework components inside of the app bundle ``path`` which
    exist, in the order in which they have to be signed.
    """
    framework = os.path.join(path, "Contents", "Frameworks", "Sparkle.framework")
    if not os.path.exists(framework):
        return []

    components = [os.path.join(framework, component) for component in SPARKLE_COMPONENTS]
    return [component for component in components if os.path.exists(component)]


def codesign_arguments(path: str, identity: str, verbose: bool = False) -> list[str]:
    args = ["codesign", "--sign", identity, "--force", "--options", "runtime", "--deep", "--timestamp", path]
    if verbose:
        args.insert(1, "--verbose")
    return args


def verify_arguments(path: str, verbose: bool = False) -> list[str]:
    args = ["codesign", "--verify", "--deep", "--strict", path]
    if verbose:
        args.insert(1, "--verbose")
    return args


def codesign_app(
    path: str,
    identity: str,
    verbose: bool = False,
    logger: logging.Logger = NULL_LOGGER,
) -> list[str]:
    """
    Signs the app bundle at ``path`` with the given ``identity``: first the Sparkle framework
    components, if the app contains the framework, then the app itself. Afterwards the signature
    is verified.

    :raises CommandError: if any of the codesign invocations fails.

    :returns: The list of all the signed paths, in order.
    """
    signed: list[str] = []
    for component in sparkle_components(path):
        name = os.path.relpath(component, path)
        run_command(codesign_arguments(component, identity, verbose), f"signing {name}",
                    verbose=verbose, logger=logger)
        signed.append(component)

    run_command(codesign_arguments(path, identity, verbose), "signing the app",
                verbose=verbose, logger=logger)
    signed.append(path)

    run_command(verify_arguments(path, verbose), "verifying the signature",
                verbose=verbose, logger=logger)
    return signed
