"""
Creation of DMG installer images for macOS app bundles.
"""

import glob
import logging
import os
import subprocess

from jarvis.util import NULL_LOGGER, CommandError, command_exists, get_command_output, run_command
from jarvis.xcode.signing import read_app_info


def dmg_filename(
    name: str | None,
    scheme: str,
    version: str = "",
    archs: str = "",
    include_arch: bool = True,
) -> str:
    """
    Returns the file name of the DMG image. An explicit ``name`` is used as it is (with the ".dmg"
    suffix added if it is missing). Otherwise the name is built as ``scheme[-version][-arch].dmg``
    where ``archs`` is the output of ``lipo -archs``: a binary which contains both x86_64 and arm64
    is called "universal".
    """
    if name:
        if not name.endswith(".dmg"):
            name += ".dmg"
        return name

    arch = ""
    if include_arch and archs.strip():
        if "x86_64" in archs and "arm64" in archs:
            arch = "universal"
        else:
            arch = archs.strip()

    filename = scheme
    if version:
        filename += f"-{version}"
    if arch:
        filename += f"-{arch}"

    return filename + ".dmg"


def detect_archs(path: str, logger: logging.Logger = NULL_LOGGER) -> str:
    """
    Returns the architectures of the executable of the app bundle ``path`` as reported by
    ``lipo -archs``, e.g. "x86_64 arm64", or an empty string.
    """
    executable_folder = os.path.join(path, "Contents", "MacOS")
    if not os.path.isdir(executable_folder):
        return ""

    for name in sorted(os.listdir(executable_folder)):
        executable = os.path.join(executable_folder, name)
        if os.path.isdir(executable):
            continue

        archs = get_command_output("lipo", "-archs", executable, logger=logger)
        if archs:
            return archs

    return ""


def parse_mount_point(output: str) -> str:
    """
    Returns the mount point in the output of ``hdiutil attach``, which is the first field that
    starts with "/Volumes/". Returns an empty string if there is none.
    """
    for line in output.splitlines():
        if "/Volumes/" not in line:
            continue

        for part in line.split():
            if part.startswith("/Volumes/"):
                return part
        break

    return ""


def create_dmg_hdiutil(
    path: str,
    destination: str,
    volume_name: str,
    verbose: bool = False,
    logger: logging.Logger = NULL_LOGGER,
) -> str:
    """
    Creates the compressed DMG image ``destination`` for the app bundle ``path`` with hdiutil. The
    app is first copied into a writable temporary image, which is mounted to add a link to the
    /Applications folder and then converted into the final zlib compressed image.

    :raises CommandError: if one of the steps fails.

    :returns: The path of the DMG file.
    """
    temp = destination[:-len(".dmg")] + "-temp.dmg"
    run_command(
        ["hdiutil", "create", "-srcfolder", path, "-format", "UDRW", "-volname", volume_name, temp],
        "creating the temporary image", verbose=verbose, logger=logger,
    )

    logger.debug(f"attaching {temp}")
    try:
        completed = subprocess.run(
            ["hdiutil", "attach", temp, "-readwrite", "-noverify", "-noautoopen"],
            stdout=subprocess.PIPE,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise CommandError("mounting the temporary image", str(exc))

    mount_point = parse_mount_point(completed.stdout.decode("utf-8", errors="replace"))
    if not mount_point:
        raise CommandError("mounting the temporary image", "mount point not found")

    try:
        run_command(
            ["ln", "-s", "/Applications", os.path.join(mount_point, "Applications")],
            "linking the Applications folder", verbose=verbose, logger=logger,
        )
    except CommandError:
        get_command_output("hdiutil", "detach", mount_point, logger=logger)
        raise

    run_command(["hdiutil", "detach", mount_point], "detaching the image",
                verbose=verbose, logger=logger)
    run_command(
        ["hdiutil", "convert", temp, "-format", "UDZO", "-imagekey", "zlib-level=9", "-o", destination],
        "compressing the image", verbose=verbose, logger=logger,
    )

    if os.path.exists(temp):
        os.remove(temp)

    return destination


def create_dmg_create_dmg(
    path: str,
    destination: str,
    verbose: bool = False,
    logger: logging.Logger = NULL_LOGGER,
) -> str:
    """
    Creates the DMG image with the "create-dmg" tool (installed with npm) and renames the image it
    produces to ``destination``. Spaces in the file name are replaced with dashes.
    """
    folder = os.path.dirname(destination) or "."
    destination = os.path.join(folder, os.path.basename(destination).replace(" ", "-"))
    existing = set(glob.glob(os.path.join(folder, "*.dmg")))

    run_command(["create-dmg", "--overwrite", path, folder], "generating the DMG file",
                verbose=verbose, logger=logger)

    created = sorted(set(glob.glob(os.path.join(folder, "*.dmg"))) - existing)
    if created and created[0] != destination:
        os.replace(created[0], destination)

    return destination


def package_app(
    path: str,
    output: str,
    scheme: str,
    name: str | None = None,
    include_arch: bool = True,
    use_create_dmg: bool = False,
    verbose: bool = False,
    logger: logging.Logger = NULL_LOGGER,
) -> str:
    """
    Creates the DMG installer for the app bundle ``path`` in the ``output`` folder, which is
    created if it does not exist. Uses create-dmg if requested and installed, hdiutil otherwise.

    :returns: The path of the created DMG file.
    """
    os.makedirs(output, exist_ok=True)

    version = read_app_info(path, logger=logger).get("version", "")
    archs = detect_archs(path, logger=logger) if include_arch else ""
    destination = os.path.join(output, dmg_filename(name, scheme, version, archs, include_arch))

    if use_create_dmg and command_exists("create-dmg"):
        return create_dmg_create_dmg(path, destination, verbose=verbose, logger=logger)

    return create_dmg_hdiutil(path, destination, scheme, verbose=verbose, logger=logger)
