"""
Command implementations for building, signing and packaging macOS apps.
"""

import os
import sys

import rich_click as click
from rich.markup import escape

from jarvis.cli.display import RichHeader, RichKeyValues, RichRoadmap
from jarvis.util import CommandError, get_command_output
from jarvis.xcode.dmg import package_app
from jarvis.xcode.project import (
    XcodeError,
    app_path,
    build,
    detect_project,
    detect_scheme,
    find_pbxproj,
    increment_version,
    list_schemes,
    read_marketing_version,
    search_app_paths,
    update_marketing_version,
)
from jarvis.xcode.signing import codesign_app, count_identities, parse_identities

PROFILES_PATH = os.path.expanduser(os.path.join("~", "Library", "MobileDevice", "Provisioning Profiles"))


class XcodeCommandsMixin:
    """
    Mixin class providing the commands for the development and distribution of macOS apps.

    This mixin provides commands for:
    - xcode group: Container for all xcode commands
    - info: The installed developer tools and the project in the current folder
    - version / bump: Show or increment the MARKETING_VERSION of the project
    - build: Release build with xcodebuild
    - codesign: Sign the app bundle and verify the signature
    - package: Create the DMG installer
    - setup: Inspect the code signing environment
    """

    @click.group("xcode", short_help="Command group for building and distributing macOS apps.")
    @click.pass_obj
    def xcode_group(self) -> None:
        """
        This command group contains the commands which take a macOS app from its sources to a signed
        installer. All commands operate on the Xcode project in the current working directory.
        """
        pass

    # ~ utility methods

    def xcode_fail(self, exc: Exception) -> None:
        """
        Prints the given ``exc`` as a red message and exits. The exit code of an XcodeError is its
        ``code``, all other errors exit with 1.
        """
        self.cons.print(f"[red]❌ {escape(str(exc))}[/red]")
        sys.exit(exc.code if isinstance(exc, XcodeError) else 1)

    def resolve_scheme(self, scheme: str | None) -> str:
        if scheme:
            return scheme

        scheme = detect_scheme(os.getcwd(), logger=self.logger)
        if not scheme:
            self.cons.print("[red]No scheme found, please provide one with --scheme.[/red]")
            sys.exit(1)

        self.cons.print(f"[bright_black]using the scheme {escape(scheme)}[/bright_black]")
        return scheme

    def resolve_app(self, build_path: str, scheme: str) -> str:
        """
        Returns the path of the app bundle of ``scheme`` in ``build_path``. If it does not exist, the
        places where an app bundle of the scheme was found are listed and the command exits.
        """
        path = app_path(build_path, scheme)
        if os.path.isdir(path):
            return path

        self.cons.print(f"[red]App not found: {escape(path)}[/red]")
        candidates = search_app_paths(scheme)
        if candidates:
            self.cons.print("[yellow]The app was found in these places, use --build-path:[/yellow]")
            for candidate in candidates:
                self.cons.print(f"  {escape(candidate)}")
        else:
            self.cons.print("[yellow]Build the app first: jarvis xcode build[/yellow]")

        sys.exit(1)

    # ~ commands

    @click.command("info", short_help="Show the developer tools and the current project.")
    @click.option("-v", "--verbose", is_flag=True, help="Also show git and the available SDKs.")
    @click.pass_obj
    def xcode_info_command(self, verbose: bool) -> None:
        self.cons.print(RichHeader("🔨 Xcode"))

        def first_line(*args: str) -> str:
            output = get_command_output(*args, logger=self.logger)
            return output.splitlines()[0] if output else "not available"

        tools = {
            "Developer directory": first_line("xcode-select", "-p"),
            "Xcode": " ".join(get_command_output("xcodebuild", "-version", logger=self.logger).split())
            or "not available",
            "Swift": first_line("swift", "--version"),
            "Clang": first_line("clang", "--version"),
        }
        if verbose:
            tools["Git"] = first_line("git", "--version")
        self.cons.print(RichKeyValues("Tools", tools))

        try:
            project, kind = detect_project(os.getcwd())
        except XcodeError as exc:
            self.cons.print(f"[yellow]{escape(str(exc))} in the current folder[/yellow]")
            return

        values = {kind.capitalize(): os.path.basename(project)}
        schemes = list_schemes(project, kind, logger=self.logger)
        if schemes:
            values["Schemes"] = ", ".join(schemes)
        try:
            values["Version"] = read_marketing_version(find_pbxproj(os.getcwd()))
        except XcodeError:
            values["Version"] = "unknown"
        self.cons.print(RichKeyValues("Project", values))

        if verbose:
            sdks = get_command_output("xcodebuild", "-showsdks", logger=self.logger)
            if sdks:
                self.cons.print("[bold]SDKs[/bold]")
                self.cons.print(escape(sdks))

    @click.command("version", short_help="Show the marketing version of the project.")
    @click.option("-p", "--project", "project_path", type=click.STRING, default=None,
                  help="Path of the .pbxproj file. Searched in the current folder by default.")
    @click.pass_obj
    def xcode_version_command(self, project_path: str | None) -> None:
        try:
            project_path = project_path or find_pbxproj(os.getcwd())
            version = read_marketing_version(project_path)
        except XcodeError as exc:
            self.xcode_fail(exc)

        self.cons.print(f"[bright_black]{escape(project_path)}[/bright_black]")
        click.echo(version)

    @click.command("bump", short_help="Increment the patch number of the marketing version.")
    @click.option("-p", "--project", "project_path", type=click.STRING, default=None,
                  help="Path of the .pbxproj file. Searched in the current folder by default.")
    @click.option("--dry-run", is_flag=True, help="Only show the new version, do not modify the file.")
    @click.pass_obj
    def xcode_bump_command(self, project_path: str | None, dry_run: bool) -> None:
        """
        Increments the patch number of the MARKETING_VERSION of the project, e.g. 1.2.3 becomes 1.2.4,
        and writes the new version into the project file.
        """
        try:
            project_path = project_path or find_pbxproj(os.getcwd())
            old = read_marketing_version(project_path)
            new = increment_version(old)
            if not dry_run:
                update_marketing_version(project_path, old, new)
        except XcodeError as exc:
            self.xcode_fail(exc)

        if dry_run:
            click.echo(f"{old} -> {new} (dry run)")
        else:
            click.echo(f"{old} -> {new}")
            self.cons.print(RichRoadmap("version"))

    @click.command("build", short_help="Build the app in the Release configuration.")
    @click.option("-s", "--scheme", type=click.STRING, default=None,
                  help="The scheme to build. Defaults to the first scheme of the project.")
    @click.option("-b", "--build-path", type=click.STRING, default="./temp", show_default=True,
                  help="The derived data folder.")
    @click.option("-a", "--arch", type=click.Choice(["universal", "x86_64", "arm64"]),
                  default="universal", show_default=True, help="The target architecture.")
    @click.option("-v", "--verbose", is_flag=True, help="Show the output of xcodebuild.")
    @click.option("--clean/--no-clean", default=True, show_default=True,
                  help="Clean the build folder before building.")
    @click.pass_obj
    def xcode_build_command(
        self,
        scheme: str | None,
        build_path: str,
        arch: str,
        verbose: bool,
        clean: bool,
    ) -> None:
        try:
            project, kind = detect_project(os.getcwd())
        except XcodeError as exc:
            self.xcode_fail(exc)

        scheme = self.resolve_scheme(scheme)
        self.cons.print(f"🔨 building [cyan]{escape(scheme)}[/cyan] ({arch})")
        try:
            build(project, kind, scheme, build_path, arch=arch, verbose=verbose, clean=clean,
                  logger=self.logger)
        except CommandError as exc:
            self.xcode_fail(exc)

        self.cons.print(f"[green]✅ build complete: {escape(app_path(build_path, scheme))}[/green]")
        self.cons.print(RichRoadmap("build"))

    @click.command("codesign", short_help="Sign the app and verify the signature.")
    @click.option("-s", "--scheme", type=click.STRING, default=None,
                  help="The scheme of the app. Defaults to the first scheme of the project.")
    @click.option("-b", "--build-path", type=click.STRING, default="./temp", show_default=True,
                  help="The derived data folder used for the build.")
    @click.option("-i", "--identity", type=click.STRING, required=True,
                  help='The signing identity, e.g. "Developer ID Application: Name (TEAMID)".')
    @click.option("-v", "--verbose", is_flag=True, help="Show the output of codesign.")
    @click.pass_obj
    def xcode_codesign_command(self, scheme: str | None, build_path: str, identity: str, verbose: bool) -> None:
        scheme = self.resolve_scheme(scheme)
        path = self.resolve_app(build_path, scheme)

        self.cons.print(f"🔏 signing [cyan]{escape(path)}[/cyan]")
        try:
            signed = codesign_app(path, identity, verbose=verbose, logger=self.logger)
        except CommandError as exc:
            self.xcode_fail(exc)

        for signed_path in signed:
            self.cons.print(f"  [green]✓[/green] {escape(os.path.relpath(signed_path, os.path.dirname(path)))}")
        self.cons.print("[green]✅ signature verified[/green]")
        self.cons.print(RichRoadmap("codesign"))

    @click.command("package", short_help="Create the DMG installer of the app.")
    @click.option("-s", "--scheme", type=click.STRING, default=None,
                  help="The scheme of the app. Defaults to the first scheme of the project.")
    @click.option("-b", "--build-path", type=click.STRING, default="./temp/Build/Products/Release",
                  show_default=True, help="The folder which contains the app bundle.")
    @click.option("-o", "--output", type=click.STRING, default="./temp", show_default=True,
                  help="The folder in which the DMG file is created.")
    @click.option("-n", "--name", type=click.STRING, default=None,
                  help="The name of the DMG file. Defaults to SCHEME-VERSION-ARCH.dmg")
    @click.option("--include-arch/--no-include-arch", default=True, show_default=True,
                  help="Add the architecture to the default file name.")
    @click.option("--use-create-dmg", is_flag=True, help="Use create-dmg instead of hdiutil if installed.")
    @click.option("-v", "--verbose", is_flag=True, help="Show the output of the tools.")
    @click.pass_obj
    def xcode_package_command(
        self,
        scheme: str | None,
        build_path: str,
        output: str,
        name: str | None,
        include_arch: bool,
        use_create_dmg: bool,
        verbose: bool,
    ) -> None:
        scheme = self.resolve_scheme(scheme)
        path = self.resolve_app(build_path, scheme)

        self.cons.print(f"📦 packaging [cyan]{escape(path)}[/cyan]")
        try:
            destination = package_app(
                path,
                output,
                scheme,
                name=name,
                include_arch=include_arch,
                use_create_dmg=use_create_dmg,
                verbose=verbose,
                logger=self.logger,
            )
        except CommandError as exc:
            self.xcode_fail(exc)

        self.cons.print(f"[green]✅ installer created: {escape(destination)}[/green]")
        self.cons.print(RichRoadmap("package"))

    @click.command("setup", short_help="Inspect the code signing environment.")
    @click.option("--show-certificates", is_flag=True, help="List the code signing identities.")
    @click.option("--show-keychain", is_flag=True, help="List the keychains.")
    @click.option("--show-profiles", is_flag=True, help="List the provisioning profiles.")
    @click.option("--all", "show_all", is_flag=True, help="Show everything.")
    @click.option("-v", "--verbose", is_flag=True, help="Show additional details.")
    @click.pass_obj
    def xcode_setup_command(
        self,
        show_certificates: bool,
        show_keychain: bool,
        show_profiles: bool,
        show_all: bool,
        verbose: bool,
    ) -> None:
        """
        Shows whether the developer tools are installed and how many development and distribution
        certificates are available for code signing.
        """
        self.cons.print(RichHeader("🔧 Code Signing Setup"))

        developer_path = get_command_output("xcode-select", "-p", logger=self.logger)
        if developer_path:
            self.cons.print(f"[green]✓[/green] developer tools: {escape(developer_path)}")
        else:
            self.cons.print("[red]✗ developer tools not found, run: xcode-select --install[/red]")

        identities_output = get_command_output("security", "find-identity", "-v", "-p", "codesigning",
                                               logger=self.logger)
        development, distribution = count_identities(identities_output)
        self.cons.print(f"  development certificates: {development}")
        self.cons.print(f"  distribution certificates: {distribution}")
        if distribution == 0:
            self.cons.print("[yellow]  a Developer ID Application certificate is needed for distribution[/yellow]")

        if show_certificates or show_all:
            identities = parse_identities(identities_output)
            self.cons.print("[bold]Certificates[/bold]")
            if not identities:
                self.cons.print("  [bright_black]none[/bright_black]")
            for name, kind in identities:
                self.cons.print(f"  {escape(name)}")
                if verbose:
                    self.cons.print(f"    [bright_black]{escape(kind)}[/bright_black]")

        if show_keychain or show_all:
            self.cons.print("[bold]Keychains[/bold]")
            keychains = get_command_output("security", "list-keychains", logger=self.logger)
            for line in keychains.splitlines() or ["not available"]:
                self.cons.print(f"  {escape(line.strip().strip(chr(34)))}")

        if show_profiles or show_all:
            self.cons.print("[bold]Provisioning profiles[/bold]")
            profiles = []
            if os.path.isdir(PROFILES_PATH):
                profiles = sorted(
                    name for name in os.listdir(PROFILES_PATH)
                    if name.endswith((".provisionprofile", ".mobileprovision"))
                )
            if not profiles:
                self.cons.print("  [bright_black]none[/bright_black]")
            for profile in profiles:
                self.cons.print(f"  {escape(profile)}")

        self.cons.print(RichRoadmap("setup"))
