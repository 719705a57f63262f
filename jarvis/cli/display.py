"""
Rich display classes for CLI output.
"""

import rich.box
import rich.panel
from rich.console import Console, ConsoleOptions, RenderResult
from rich.markup import escape
from rich.padding import Padding
from rich.style import Style
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from jarvis.system import DiskInfo, InterfaceInfo, ProcessInfo
from jarvis.util import truncate_string
from jarvis.xcode.project import ROADMAP, next_step_hint

LOGO = r"""
     _                  _
    | | __ _ _ ____   _(_)___
 _  | |/ _` | '__\ \ / / / __|
| |_| | (_| | |   \ V /| \__ \
 \___/ \__,_|_|    \_/ |_|___/
"""


def usage_color(percent: float, warning: float = 60, critical: float = 80) -> str:
    if percent > critical:
        return "red"
    if percent > warning:
        return "yellow"
    return "green"


class RichLogo:
    """
    A rich display which will show the Jarvis logo in ASCII art when printed.
    """

    STYLE = Style(bold=True, color="cyan")

    def __rich_console__(self, console, options):
        yield Padding(Text(LOGO.strip("\n"), style=self.STYLE), (1, 3, 0, 3))


class RichHelp:
    """
    Rich display class for showing the Jarvis help information.
    """

    def __rich_console__(
        self,
        console: Console,
        options: ConsoleOptions,
    ) -> RenderResult:
        yield "[white bold]Jarvis[/white bold] - a personal command line assistant"
        yield ""
        yield (
            "Jarvis bundles a couple of small automation helpers behind one command: a client for the "
            "hosting control panel API, a MySQL helper, system information reports and a toolchain "
            "to build, sign and package macOS apps with Xcode."
        )
        yield ""
        # ~ panel
        yield "📌 [magenta bold]Hosting Panel[/magenta bold]"
        yield ""
        yield (
            "All the commands of the [cyan]panel[/cyan] group send signed requests to the panel API. The "
            "address and the key of the panel can be given as options or through the JARVIS_PANEL_HOST "
            "and JARVIS_PANEL_KEY environment variables."
        )
        yield Padding(
            Syntax(
                "jarvis panel --key=SECRET crontab get",
                lexer="bash",
                theme="monokai",
                line_numbers=False,
            ),
            (1, 3),
        )
        yield "Use [cyan]jarvis panel --help[/cyan] for more information"
        yield ""
        # ~ system
        yield "📌 [magenta bold]System Information[/magenta bold]"
        yield ""
        yield (
            "The [cyan]system[/cyan] group reports the state of the local machine, for example the "
            "processes with the highest CPU usage."
        )
        yield Padding(
            Syntax(
                "jarvis system process --top=5 --sort=memory",
                lexer="bash",
                theme="monokai",
                line_numbers=False,
            ),
            (1, 3),
        )
        # ~ xcode
        yield "📌 [magenta bold]Xcode[/magenta bold]"
        yield ""
        yield (
            "The [cyan]xcode[/cyan] group covers the way from the sources to the installer: "
            "version, build, codesign and package."
        )
        yield Padding(
            Syntax(
                "jarvis xcode bump && jarvis xcode build --arch universal",
                lexer="bash",
                theme="monokai",
                line_numbers=False,
            ),
            (1, 3),
        )
        yield "Use [cyan]jarvis xcode --help[/cyan] for more information"
        yield ""


class RichHeader:

    def __init__(self, title: str):
        self.title = title

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        yield rich.panel.Panel(
            Text(self.title, justify="center", style="bold"),
            box=rich.box.HEAVY,
            border_style="blue",
        )


class RichUsageBar:
    """
    Displays a percentage as a bar of 30 cells. The filled part is green up to 60%, yellow up to 80%
    and red above that.
    """

    LENGTH = 30

    def __init__(self, percent: float):
        self.percent = percent

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        filled = max(0, min(self.LENGTH, int(self.percent / 100.0 * self.LENGTH)))
        color = usage_color(self.percent)
        bar = Text("  [")
        bar.append("█" * filled, style=color)
        bar.append("░" * (self.LENGTH - filled))
        bar.append(f"] {self.percent:.1f}%")
        yield bar


class RichKeyValues:
    """
    Displays the given ``values`` dict as a list of aligned "key: value" lines in a panel with the
    given ``title``.
    """

    def __init__(self, title: str, values: dict[str, str]):
        self.title = title
        self.values = values

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        table = Table(box=None, show_header=False, padding=(0, 2, 0, 0))
        table.add_column(style="bold")
        table.add_column()
        for key, value in self.values.items():
            table.add_row(escape(key), escape(str(value)))

        yield rich.panel.Panel(
            table,
            title=self.title,
            title_align="left",
            border_style="bright_black",
        )


class RichDiskTable:
    """
    Displays the given list of disks as a table, including a usage bar for each of them unless
    ``inodes`` is set.
    """

    def __init__(self, disks: list[DiskInfo], inodes: bool = False):
        self.disks = disks
        self.inodes = inodes

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        table = Table(box=rich.box.SIMPLE, header_style="yellow")
        table.add_column("Filesystem")
        table.add_column("Inodes" if self.inodes else "Size", justify="right")
        table.add_column("Used", justify="right")
        table.add_column("Avail", justify="right")
        table.add_column("Use%", justify="right")
        table.add_column("Mounted on")
        for disk in self.disks:
            color = usage_color(disk.usage, warning=80, critical=90)
            table.add_row(
                escape(truncate_string(disk.filesystem, 20)),
                disk.size,
                disk.used,
                disk.avail,
                f"[{color}]{disk.use_percent}[/{color}]",
                escape(disk.mount_point),
            )

        yield table
        if not self.inodes:
            for disk in self.disks:
                if disk.usage >= 0:
                    yield f"[bright_black]{escape(disk.mount_point)}[/bright_black]"
                    yield RichUsageBar(disk.usage)


class RichProcessTable:

    def __init__(self, processes: list[ProcessInfo], verbose: bool = False):
        self.processes = processes
        self.verbose = verbose

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        table = Table(box=rich.box.SIMPLE, header_style="yellow")
        table.add_column("PID", justify="right")
        table.add_column("Name")
        table.add_column("CPU%", justify="right")
        table.add_column("MEM%", justify="right")
        table.add_column("User")
        if self.verbose:
            table.add_column("Command")

        for process in self.processes:
            cpu_color = usage_color(process.cpu, warning=20, critical=50)
            mem_color = usage_color(process.memory, warning=5, critical=10)
            row = [
                str(process.pid),
                escape(truncate_string(process.name, 20 if self.verbose else 25)),
                f"[{cpu_color}]{process.cpu:.1f}[/{cpu_color}]",
                f"[{mem_color}]{process.memory:.1f}[/{mem_color}]",
                escape(truncate_string(process.user, 10)),
            ]
            if self.verbose:
                row.append(escape(truncate_string(process.command, 30)))
            table.add_row(*row)

        yield table


class RichInterface:

    def __init__(self, interface: InterfaceInfo, verbose: bool = False):
        self.interface = interface
        self.verbose = verbose

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        iface = self.interface
        status = "[green]UP[/green]" if iface.is_up else "[red]DOWN[/red]"
        yield f"[bold]{escape(iface.name)}[/bold] ({status})"
        if iface.ipv4:
            yield f"  IPv4: {', '.join(iface.ipv4)}"
        if iface.ipv6 and self.verbose:
            yield f"  IPv6: {', '.join(iface.ipv6)}"
        if iface.mac:
            yield f"  MAC: {iface.mac}"
        if self.verbose:
            yield f"  MTU: {iface.mtu}"


class RichRoadmap:
    """
    Displays all the steps of the development and distribution process, highlighting the
    ``current`` one, followed by a hint about the next step.
    """

    def __init__(self, current: str):
        self.current = current

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        lines: list[str] = []
        for step, title, description in ROADMAP:
            if step == self.current:
                lines.append(f"[green bold]▶ {title}[/green bold] [green]{description}[/green]")
            else:
                lines.append(f"  {title} [bright_black]{description}[/bright_black]")

        hint = next_step_hint(self.current)
        if hint:
            lines.append("")
            lines.append(f"[yellow]next:[/yellow] [cyan]{escape(hint)}[/cyan]")

        yield rich.panel.Panel(
            "\n".join(lines),
            title="🗺️  Roadmap",
            title_align="left",
            border_style="bright_black",
        )
