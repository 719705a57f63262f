"""
Tools for building, signing and packaging macOS apps with Xcode.

The process is split into the steps of :data:`jarvis.xcode.project.ROADMAP`. Every step shells out
to the developer tools that come with Xcode (xcodebuild, codesign, hdiutil, ...).
"""

from jarvis.xcode.project import (
    ROADMAP,
    XcodeError,
    app_path,
    build,
    build_arguments,
    detect_project,
    detect_scheme,
    find_pbxproj,
    increment_version,
    next_step_hint,
    parse_schemes,
    read_marketing_version,
    update_marketing_version,
)
from jarvis.xcode.signing import codesign_app, parse_identities, parse_plist_values
from jarvis.xcode.dmg import dmg_filename, package_app, parse_mount_point
