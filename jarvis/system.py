"""
Collection of system information.

Most of the information is obtained by running the usual command line utilities (df, ps, top,
vm_stat, netstat, ...) and picking the interesting fields out of their text output. The parse
functions in this module only do simple line and field splitting and they never raise: lines which
do not have the expected shape are skipped. The ``collect_*`` functions run the corresponding tools
and fall back to psutil where the tool is not available on the current platform.
"""

import logging
import os
import platform
import socket
from collections import Counter
from dataclasses import dataclass, field

import psutil

from jarvis.util import IS_MACOS, NULL_LOGGER, get_command_output, parse_int

# Mount points which are always reported, independent of the verbose flag.
IMPORTANT_MOUNTS: list[str] = ["/", "/home", "/var", "/tmp", "/usr"]

# Keywords of the lines in the "netstat -s" output which are reported without the verbose flag.
IMPORTANT_STAT_KEYWORDS: list[str] = [
    "packets sent",
    "packets received",
    "connections established",
    "connections failed",
    "packets dropped",
    "errors",
]

STATISTIC_PROTOCOLS: list[str] = ["tcp", "udp", "ip"]

PROCESS_STATE_NAMES: dict[str, str] = {
    "R": "running",
    "S": "sleeping",
    "I": "idle",
    "T": "stopped",
    "Z": "zombie",
    "U": "uninterruptible",
}

PROCESS_SORT_KEYS: list[str] = ["cpu", "memory", "mem", "pid", "name"]


@dataclass
class DiskInfo:
    filesystem: str
    size: str
    used: str
    avail: str
    use_percent: str
    mount_point: str

    @property
    def usage(self) -> float:
        return parse_usage_percent(self.use_percent)


@dataclass
class ProcessInfo:
    pid: int
    name: str
    cpu: float
    memory: float
    user: str
    command: str


@dataclass
class MemoryInfo:
    """
    Memory usage in bytes. ``total`` is derived as the sum of ``used`` and ``free``.
    """

    total: int = 0
    used: int = 0
    free: int = 0

    @property
    def usage(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100


@dataclass
class InterfaceInfo:
    name: str
    is_up: bool = False
    ipv4: list[str] = field(default_factory=list)
    ipv6: list[str] = field(default_factory=list)
    mac: str = ""
    mtu: int = 0


@dataclass
class InterfaceStats:
    rx_packets: int
    tx_packets: int
    rx_bytes: int
    tx_bytes: int


@dataclass
class MountInfo:
    device: str
    mount_point: str
    fs_type: str


@dataclass
class ConnectionSummary:
    count: int = 0
    states: dict[str, int] = field(default_factory=dict)
    samples: list[tuple[str, str, str]] = field(default_factory=list)


# == DISK ==

def parse_usage_percent(value: str) -> float:
    """
    Converts a usage string like ``"42%"`` into the float ``42.0``. Returns -1 if the string does
    not contain a number.
    """
    try:
        return float(value.strip().rstrip("%"))
    except ValueError:
        return -1.0


def parse_df(output: str) -> list[DiskInfo]:
    """
    Parses the output of ``df -h`` (or ``df -i``, in which case the size columns contain inode
    counts). The header line is skipped as well as all lines with less than 6 fields. The macOS
    output has the three inode columns before the mount point, which is then the ninth field.
    """
    disks: list[DiskInfo] = []
    for line in output.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 6:
            continue

        disks.append(DiskInfo(
            filesystem=fields[0],
            size=fields[1],
            used=fields[2],
            avail=fields[3],
            use_percent=fields[4],
            mount_point=fields[8] if len(fields) >= 9 else fields[5],
        ))

    return disks


def parse_df_inodes(output: str) -> list[DiskInfo]:
    """
    Parses the output of ``df -i``. On macOS the inode columns follow the regular size columns
    (iused, ifree, %iused, mounted on), on Linux they replace them. In both cases the mount point
    is the last field.
    """
    disks: list[DiskInfo] = []
    for line in output.splitlines()[1:]:
        fields = line.split()
        if len(fields) >= 9:
            disks.append(DiskInfo(fields[0], str(parse_int(fields[5]) + parse_int(fields[6])),
                                  fields[5], fields[6], fields[7], fields[8]))
        elif len(fields) >= 6:
            disks.append(DiskInfo(*fields[:6]))

    return disks


def should_show_disk(mount_point: str, verbose: bool = False) -> bool:
    if verbose:
        return True

    if mount_point in IMPORTANT_MOUNTS:
        return True

    return mount_point.startswith("/Volumes/")


def parse_mounts(output: str) -> list[MountInfo]:
    """
    Parses the output of ``mount``. Both the Linux form ``dev on /path type ext4 (rw)`` and the
    macOS form ``dev on /path (apfs, local)`` are understood.
    """
    mounts: list[MountInfo] = []
    for line in output.splitlines():
        if " on " not in line:
            continue

        device, rest = line.split(" on ", 1)
        if " type " in rest:
            mount_point, type_part = rest.split(" type ", 1)
            fs_type = type_part.split()[0] if type_part.split() else ""
        elif " (" in rest:
            mount_point, options = rest.split(" (", 1)
            fs_type = options.rstrip(")").split(",")[0].strip()
        else:
            continue

        mounts.append(MountInfo(device=device, mount_point=mount_point, fs_type=fs_type))

    return mounts


def parse_mount_types(output: str) -> dict[str, int]:
    """
    Returns a dict mapping each file system type in the ``mount`` output to the number of mount
    points which use it.
    """
    return dict(Counter(mount.fs_type for mount in parse_mounts(output) if mount.fs_type))


def parse_iostat(output: str) -> list[dict[str, str]]:
    """
    Parses the output of the macOS ``iostat -d``, which lays the devices out as columns: the first
    line names the devices, the second one repeats the "KB/t tps MB/s" header for each of them and
    the third line holds the values, three per device. Only devices whose name starts with "disk"
    are included, so the differently structured Linux output results in an empty list. The
    reported numbers are kept as strings, as they are only displayed.
    """
    keys = ["kb_per_transfer", "transfers", "mb_per_second"]
    lines = [line for line in output.splitlines() if line.strip()]
    if len(lines) < 3:
        return []

    names = lines[0].split()
    values = lines[2].split()
    devices: list[dict[str, str]] = []
    for index, name in enumerate(names):
        fields = values[index * 3:index * 3 + 3]
        if not name.startswith("disk") or len(fields) < 3:
            continue

        device = {"device": name}
        device.update(dict(zip(keys, fields)))
        devices.append(device)

    return devices


# == PROCESSES ==

def parse_ps_aux(output: str) -> list[ProcessInfo]:
    """
    Parses the output of ``ps aux``. Lines with less than 11 fields are skipped. The process name
    is the first word of the command, kernel threads like ``[kworker]`` lose their brackets.
    """
    processes: list[ProcessInfo] = []
    for line in output.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 11:
            continue

        try:
            cpu = float(fields[2])
        except ValueError:
            cpu = 0.0
        try:
            memory = float(fields[3])
        except ValueError:
            memory = 0.0

        name = fields[10]
        if name.startswith("[") and name.endswith("]"):
            name = name.strip("[]")

        processes.append(ProcessInfo(
            pid=parse_int(fields[1]),
            name=name,
            cpu=cpu,
            memory=memory,
            user=fields[0],
            command=" ".join(fields[10:]),
        ))

    return processes


def sort_processes(processes: list[ProcessInfo], by: str = "cpu") -> list[ProcessInfo]:
    """
    Returns a new list with the given ``processes`` sorted by the key ``by``: "cpu" and "memory"
    (or "mem") in descending order, "pid" and "name" in ascending order. Any other key sorts
    by cpu usage.
    """
    if by in ("memory", "mem"):
        return sorted(processes, key=lambda p: p.memory, reverse=True)
    if by == "pid":
        return sorted(processes, key=lambda p: p.pid)
    if by == "name":
        return sorted(processes, key=lambda p: p.name)

    return sorted(processes, key=lambda p: p.cpu, reverse=True)


def filter_processes(processes: list[ProcessInfo], text: str) -> list[ProcessInfo]:
    text = text.lower()
    return [p for p in processes if text in p.name.lower() or text in p.command.lower()]


def count_process_states(output: str) -> dict[str, int]:
    """
    Counts the main process states (first character of the STAT column) in the output of
    ``ps -eo stat``.
    """
    counter: Counter = Counter()
    for line in output.splitlines()[1:]:
        state = line.strip()
        if state:
            counter[state[0]] += 1

    return dict(counter)


# == CPU & MEMORY ==

def parse_top_cpu_usage(output: str) -> float:
    """
    Finds the "CPU usage:" line in the output of ``top -l 1 -n 0`` and returns 100 minus the idle
    percentage. Returns -1 if there is no such line.
    """
    for line in output.splitlines():
        if "CPU usage:" not in line:
            continue

        for part in line.split(","):
            part = part.strip()
            if "idle" in part:
                try:
                    return 100.0 - float(part.split()[0].rstrip("%"))
                except (ValueError, IndexError):
                    return -1.0
        break

    return -1.0


def extract_pages(line: str) -> int:
    for word in line.split():
        value = parse_int(word.rstrip("."), default=0)
        if value > 0:
            return value

    return 0


def parse_vm_stat(output: str, page_size: int = 4096) -> MemoryInfo:
    """
    Parses the output of the macOS ``vm_stat`` command. The used memory is the sum of the active,
    inactive and wired pages.
    """
    memory = MemoryInfo()
    for line in output.splitlines():
        if "Pages free:" in line:
            memory.free = extract_pages(line) * page_size
        elif "Pages active:" in line or "Pages inactive:" in line or "Pages wired down:" in line:
            memory.used += extract_pages(line) * page_size

    memory.total = memory.used + memory.free
    return memory


def parse_load_average(output: str) -> str:
    """
    Returns the load averages from the ``uptime`` output, e.g. "1.52 1.71 1.80", or an empty string.
    """
    for marker in ("load averages:", "load average:"):
        if marker in output:
            return output.split(marker, 1)[1].strip()

    return ""


# == NETWORK ==

def parse_netstat_connections(output: str, protocol: str = "tcp") -> ConnectionSummary:
    """
    Summarizes the output of ``netstat -an -p <protocol>``. The first two lines are headers. A line
    counts as a connection of the protocol if its first field starts with the protocol name (macOS
    reports "tcp4", "tcp6", "tcp46"). At most 10 connections are kept as samples of
    ``(local, foreign, state)``.
    """
    summary = ConnectionSummary()
    for line in output.splitlines()[2:]:
        fields = line.split()
        if len(fields) < 6 or not fields[0].lower().startswith(protocol):
            continue

        summary.count += 1
        local, foreign, state = fields[3], fields[4], fields[5]
        summary.states[state] = summary.states.get(state, 0) + 1
        if len(summary.samples) < 10:
            summary.samples.append((local, foreign, state))

    return summary


def is_important_stat(line: str) -> bool:
    line = line.lower()
    return any(keyword in line for keyword in IMPORTANT_STAT_KEYWORDS)


def parse_protocol_stats(output: str, verbose: bool = False) -> dict[str, list[str]]:
    """
    Groups the lines of ``netstat -s`` by protocol section. Only the tcp, udp and ip sections are
    kept and without ``verbose`` only the lines which match :func:`is_important_stat`.
    """
    sections: dict[str, list[str]] = {}
    current = ""
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue

        if line.endswith(":") and " " not in line:
            current = line[:-1]
            if current in STATISTIC_PROTOCOLS:
                sections.setdefault(current, [])
            continue

        if current in STATISTIC_PROTOCOLS and (verbose or is_important_stat(line)):
            sections[current].append(line)

    return sections


def parse_interface_stats(output: str, name: str) -> InterfaceStats | None:
    """
    Returns the packet and byte counters of the interface ``name`` from the output of
    ``netstat -i -b`` or None if the interface is not listed.
    """
    for line in output.splitlines():
        fields = line.split()
        if len(fields) >= 10 and fields[0] == name:
            return InterfaceStats(
                rx_packets=parse_int(fields[4]),
                tx_packets=parse_int(fields[7]),
                rx_bytes=parse_int(fields[6]),
                tx_bytes=parse_int(fields[9]),
            )

    return None


def list_interfaces() -> list[InterfaceInfo]:
    """
    Returns the network interfaces of the system with their addresses, as reported by psutil.
    """
    addresses = psutil.net_if_addrs()
    stats = psutil.net_if_stats()

    interfaces: list[InterfaceInfo] = []
    for name, addrs in addresses.items():
        info = InterfaceInfo(name=name)
        if name in stats:
            info.is_up = stats[name].isup
            info.mtu = stats[name].mtu

        for addr in addrs:
            if addr.family == socket.AF_INET:
                info.ipv4.append(addr.address)
            elif addr.family == socket.AF_INET6:
                info.ipv6.append(addr.address)
            elif addr.family == psutil.AF_LINK:
                info.mac = addr.address

        interfaces.append(info)

    return interfaces


# == COLLECTORS ==

def collect_basic_info(verbose: bool = False, logger: logging.Logger = NULL_LOGGER) -> dict[str, str]:
    info = {
        "Operating system": platform.system(),
        "Architecture": platform.machine(),
        "CPU cores": str(os.cpu_count() or 0),
        "Hostname": socket.gethostname(),
        "User": os.environ.get("USER", ""),
        "Working directory": os.getcwd(),
    }
    if IS_MACOS:
        info["macOS version"] = get_command_output("sw_vers", "-productVersion", logger=logger)
        info["Build version"] = get_command_output("sw_vers", "-buildVersion", logger=logger)

    info["Kernel version"] = get_command_output("uname", "-r", logger=logger) or platform.release()
    if verbose:
        info["Uptime"] = get_command_output("uptime", logger=logger)

    return {key: value for key, value in info.items() if value}


def collect_hardware_info(verbose: bool = False, logger: logging.Logger = NULL_LOGGER) -> dict[str, str]:
    info: dict[str, str] = {}
    if IS_MACOS:
        info["Processor"] = get_command_output("sysctl", "-n", "machdep.cpu.brand_string", logger=logger)
    else:
        info["Processor"] = platform.processor()

    info["Memory"] = f"{psutil.virtual_memory().total / 1024 ** 3:.1f} GB"
    if verbose and IS_MACOS:
        frequency = parse_int(get_command_output("sysctl", "-n", "hw.cpufrequency_max", logger=logger))
        if frequency > 0:
            info["Max CPU frequency"] = f"{frequency / 1e9:.2f} GHz"
        for key, label in [("hw.l1icachesize", "L1 instruction cache"),
                           ("hw.l2cachesize", "L2 cache"),
                           ("hw.l3cachesize", "L3 cache")]:
            value = get_command_output("sysctl", "-n", key, logger=logger)
            if value:
                info[label] = f"{value} bytes"

    return {key: value for key, value in info.items() if value}


def collect_environment_info(verbose: bool = False) -> dict[str, str]:
    info = {
        "Default shell": os.environ.get("SHELL", ""),
        "Terminal": os.environ.get("TERM", ""),
        "Locale": os.environ.get("LANG", ""),
    }
    if verbose:
        paths = [path for path in os.environ.get("PATH", "").split(os.pathsep) if path]
        info["PATH"] = ", ".join(paths[:10])
        if len(paths) > 10:
            info["PATH"] += f" ... {len(paths) - 10} more"

    return {key: value for key, value in info.items() if value}


def collect_cpu_usage(logger: logging.Logger = NULL_LOGGER) -> float:
    if IS_MACOS:
        usage = parse_top_cpu_usage(get_command_output("top", "-l", "1", "-n", "0", logger=logger))
        if usage >= 0:
            return usage

    return psutil.cpu_percent(interval=0.1)


def collect_memory(logger: logging.Logger = NULL_LOGGER) -> MemoryInfo:
    if IS_MACOS:
        output = get_command_output("vm_stat", logger=logger)
        if output:
            page_size = parse_int(get_command_output("sysctl", "-n", "hw.pagesize", logger=logger), 4096)
            return parse_vm_stat(output, page_size)

    memory = psutil.virtual_memory()
    return MemoryInfo(total=memory.total, used=memory.total - memory.available, free=memory.available)


def collect_load_average(logger: logging.Logger = NULL_LOGGER) -> str:
    load = parse_load_average(get_command_output("uptime", logger=logger))
    if load:
        return load

    return " ".join(f"{value:.2f}" for value in psutil.getloadavg())


def collect_disks(logger: logging.Logger = NULL_LOGGER) -> list[DiskInfo]:
    return parse_df(get_command_output("df", "-h", logger=logger))


def collect_processes(logger: logging.Logger = NULL_LOGGER) -> list[ProcessInfo]:
    return parse_ps_aux(get_command_output("ps", "aux", logger=logger))
