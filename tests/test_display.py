from rich.console import Console

from jarvis.cli.display import (
    RichDiskTable,
    RichInterface,
    RichKeyValues,
    RichLogo,
    RichProcessTable,
    RichRoadmap,
    RichUsageBar,
    usage_color,
)
from jarvis.system import DiskInfo, InterfaceInfo, ProcessInfo


def render(renderable) -> str:
    console = Console(width=120, record=True, force_terminal=False)
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def test_usage_color():
    assert usage_color(10) == "green"
    assert usage_color(60) == "green"
    assert usage_color(61) == "yellow"
    assert usage_color(81) == "red"
    assert usage_color(85, warning=80, critical=90) == "yellow"


def test_usage_bar_has_thirty_cells():
    output = render(RichUsageBar(50))
    assert output.count("█") == 15
    assert output.count("░") == 15
    assert "50.0%" in output

    output = render(RichUsageBar(150))
    assert output.count("█") == 30


def test_logo_renders():
    assert "|" in render(RichLogo())


def test_key_values_escape_markup():
    output = render(RichKeyValues("Basic", {"Shell": "[bold]/bin/zsh"}))
    assert "[bold]/bin/zsh" in output


def test_disk_table():
    disks = [DiskInfo("/dev/sda1", "98G", "42G", "52G", "45%", "/")]
    output = render(RichDiskTable(disks))
    assert "/dev/sda1" in output
    assert "45.0%" in output


def test_process_table_verbose_shows_command():
    processes = [ProcessInfo(733, "python3", 45.0, 8.4, "alice", "python3 train.py")]
    assert "train.py" not in render(RichProcessTable(processes))
    assert "train.py" in render(RichProcessTable(processes, verbose=True))


def test_interface():
    interface = InterfaceInfo(name="en0", is_up=True, ipv4=["192.168.1.20"], ipv6=["fe80::1"], mtu=1500)
    output = render(RichInterface(interface))
    assert "en0 (UP)" in output
    assert "192.168.1.20" in output
    assert "fe80::1" not in output
    assert "MTU: 1500" in render(RichInterface(interface, verbose=True))


def test_roadmap_highlights_current_step():
    output = render(RichRoadmap("build"))
    assert "▶ Build" in output
    assert "jarvis xcode codesign" in output
