"""
Tests the parsers of the system information module against captured outputs of the command line
tools, which are stored in the assets folder.
"""
import pytest

from jarvis.system import (
    DiskInfo,
    MemoryInfo,
    ProcessInfo,
    collect_environment_info,
    count_process_states,
    filter_processes,
    is_important_stat,
    list_interfaces,
    parse_df,
    parse_df_inodes,
    parse_interface_stats,
    parse_iostat,
    parse_load_average,
    parse_mount_types,
    parse_mounts,
    parse_netstat_connections,
    parse_protocol_stats,
    parse_ps_aux,
    parse_top_cpu_usage,
    parse_usage_percent,
    parse_vm_stat,
    should_show_disk,
    sort_processes,
)

from .util import LOG, read_asset


# == DISK ==

def test_parse_usage_percent():
    assert parse_usage_percent("42%") == 42.0
    assert parse_usage_percent(" 7% ") == 7.0
    assert parse_usage_percent("-") == -1.0


def test_parse_df_linux():
    disks = parse_df(read_asset("df_linux.txt"))
    assert len(disks) == 4
    assert disks[0] == DiskInfo("/dev/sda1", "98G", "42G", "52G", "45%", "/")
    assert disks[2].mount_point == "/home"
    assert disks[2].usage == 98.0


def test_parse_df_macos():
    disks = parse_df(read_asset("df_h.txt"))
    LOG.info(disks)
    assert [disk.mount_point for disk in disks] == [
        "/",
        "/dev",
        "/System/Volumes/VM",
        "/System/Volumes/Data",
        "/Volumes/Backup",
    ]
    assert disks[0].use_percent == "4%"


def test_parse_df_skips_short_lines():
    assert parse_df("Filesystem Size\nshort line\n") == []


def test_parse_df_inodes_linux():
    disks = parse_df_inodes(read_asset("df_inodes_linux.txt"))
    assert disks[0].filesystem == "/dev/sda1"
    assert disks[0].size == "6553600"
    assert disks[0].use_percent == "7%"
    assert disks[0].mount_point == "/"


def test_parse_df_inodes_macos():
    disks = parse_df_inodes(read_asset("df_h.txt"))
    assert disks[0].mount_point == "/"
    assert disks[0].used == "404167"
    assert disks[0].avail == "3251016480"
    assert disks[0].size == str(404167 + 3251016480)
    assert disks[0].use_percent == "0%"


def test_should_show_disk():
    assert should_show_disk("/")
    assert should_show_disk("/home")
    assert should_show_disk("/Volumes/Backup")
    assert not should_show_disk("/dev")
    assert not should_show_disk("/System/Volumes/VM")
    assert should_show_disk("/System/Volumes/VM", verbose=True)


def test_parse_mounts_macos_and_linux():
    mounts = parse_mounts(read_asset("mount_macos.txt"))
    assert mounts[0].device == "/dev/disk3s1s1"
    assert mounts[0].mount_point == "/"
    assert mounts[0].fs_type == "apfs"
    assert mounts[-1].device == "map auto_home"

    mounts = parse_mounts(read_asset("mount_linux.txt"))
    assert mounts[1].mount_point == "/proc"
    assert mounts[1].fs_type == "proc"


def test_parse_mount_types():
    assert parse_mount_types(read_asset("mount_macos.txt")) == {"apfs": 3, "devfs": 1, "autofs": 1}
    assert parse_mount_types(read_asset("mount_linux.txt")) == {"ext4": 2, "proc": 1, "tmpfs": 1}


def test_parse_iostat():
    devices = parse_iostat(read_asset("iostat_devices.txt"))
    assert [device["device"] for device in devices] == ["disk0", "disk4"]
    assert devices[0]["kb_per_transfer"] == "21.43"
    assert devices[0]["transfers"] == "57"
    assert devices[0]["mb_per_second"] == "1.19"
    assert devices[1]["kb_per_transfer"] == "128.00"


def test_parse_iostat_other_layouts():
    assert parse_iostat(read_asset("iostat_linux.txt")) == []
    assert parse_iostat("") == []


# == PROCESSES ==

def test_parse_ps_aux():
    processes = parse_ps_aux(read_asset("ps_aux.txt"))
    assert len(processes) == 5

    python = processes[2]
    assert python.pid == 733
    assert python.name == "python3"
    assert python.cpu == 45.0
    assert python.memory == 8.4
    assert python.user == "alice"
    assert python.command == "python3 train.py --epochs 10"

    # kernel threads lose their brackets
    assert processes[4].name == "kthreadd"


def test_sort_processes():
    processes = parse_ps_aux(read_asset("ps_aux.txt"))

    assert [p.pid for p in sort_processes(processes, "cpu")][:2] == [733, 512]
    assert [p.pid for p in sort_processes(processes, "memory")][:2] == [733, 512]
    assert [p.pid for p in sort_processes(processes, "mem")][:2] == [733, 512]
    assert [p.pid for p in sort_processes(processes, "pid")] == [1, 2, 150, 512, 733]
    assert sort_processes(processes, "name")[0].name == "/Applications/Safari.app/Contents/MacOS/Safari"
    # unknown keys fall back to cpu
    assert sort_processes(processes, "other")[0].pid == 733


def test_sort_processes_returns_new_list():
    processes = [
        ProcessInfo(1, "a", 1.0, 1.0, "root", "a"),
        ProcessInfo(2, "b", 2.0, 2.0, "root", "b"),
    ]
    result = sort_processes(processes, "cpu")
    assert result is not processes
    assert [p.pid for p in processes] == [1, 2]


def test_filter_processes_is_case_insensitive():
    processes = parse_ps_aux(read_asset("ps_aux.txt"))
    assert [p.pid for p in filter_processes(processes, "SAFARI")] == [512]
    assert [p.pid for p in filter_processes(processes, "epochs")] == [733]


def test_count_process_states():
    assert count_process_states(read_asset("ps_stat.txt")) == {"S": 4, "R": 1, "I": 1, "Z": 1}


# == CPU & MEMORY ==

def test_parse_top_cpu_usage():
    assert parse_top_cpu_usage(read_asset("top.txt")) == pytest.approx(20.52)
    assert parse_top_cpu_usage("no cpu line here") == -1.0


def test_parse_vm_stat():
    memory = parse_vm_stat(read_asset("vm_stat.txt"), page_size=16384)
    assert memory.free == 10000 * 16384
    assert memory.used == (200000 + 150000 + 50000) * 16384
    assert memory.total == memory.used + memory.free


def test_memory_info_usage():
    assert MemoryInfo(total=200, used=50, free=150).usage == 25.0
    assert MemoryInfo().usage == 0.0


def test_parse_load_average():
    assert parse_load_average("10:21  up 3 days,  2:01, 2 users, load averages: 1.52 1.71 1.80") == "1.52 1.71 1.80"
    assert parse_load_average(" 10:21:07 up 3 days, 1 user,  load average: 0.10, 0.20, 0.30") == "0.10, 0.20, 0.30"
    assert parse_load_average("") == ""


# == NETWORK ==

def test_parse_netstat_connections():
    summary = parse_netstat_connections(read_asset("netstat_tcp.txt"), "tcp")
    assert summary.count == 5
    assert summary.states == {"ESTABLISHED": 2, "LISTEN": 2, "TIME_WAIT": 1}
    assert summary.samples[0] == ("192.168.1.20.52044", "17.57.146.52.5223", "ESTABLISHED")


def test_parse_netstat_connections_keeps_ten_samples():
    header = "Active Internet connections\nProto Recv-Q Send-Q Local Foreign (state)\n"
    lines = "".join(f"tcp4 0 0 10.0.0.1.{port} 10.0.0.2.443 ESTABLISHED\n" for port in range(15))
    summary = parse_netstat_connections(header + lines, "tcp")
    assert summary.count == 15
    assert len(summary.samples) == 10


def test_is_important_stat():
    assert is_important_stat("123456 packets sent")
    assert is_important_stat("512 connections established (including accepts)")
    assert not is_important_stat("1000 acks (for 123456 bytes)")


def test_parse_protocol_stats():
    sections = parse_protocol_stats(read_asset("netstat_s.txt"))
    assert set(sections.keys()) == {"tcp", "udp", "ip"}
    assert sections["tcp"] == [
        "123456 packets sent",
        "234567 packets received",
        "512 connections established (including accepts)",
    ]
    assert sections["udp"] == ["12 packets dropped due to full socket buffers"]
    assert len(sections["ip"]) == 2

    verbose = parse_protocol_stats(read_asset("netstat_s.txt"), verbose=True)
    assert len(verbose["tcp"]) == 6


def test_parse_interface_stats():
    stats = parse_interface_stats(read_asset("netstat_ib.txt"), "en0")
    assert stats.rx_packets == 1234567
    assert stats.rx_bytes == 1500000000
    assert stats.tx_packets == 765432
    assert stats.tx_bytes == 200000000

    assert parse_interface_stats(read_asset("netstat_ib.txt"), "en9") is None


def test_list_interfaces_returns_named_interfaces():
    interfaces = list_interfaces()
    LOG.info(interfaces)
    assert all(interface.name for interface in interfaces)


def test_collect_environment_info_limits_path(monkeypatch):
    monkeypatch.setenv("PATH", ":".join(f"/bin{index}" for index in range(12)))
    info = collect_environment_info(verbose=True)
    assert info["PATH"].startswith("/bin0, /bin1")
    assert info["PATH"].endswith("... 2 more")
