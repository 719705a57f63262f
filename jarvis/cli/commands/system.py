"""
Command implementations for the system information reports.
"""

import rich_click as click
from rich.markup import escape

from jarvis.cli.display import (
    RichDiskTable,
    RichHeader,
    RichInterface,
    RichKeyValues,
    RichProcessTable,
    RichUsageBar,
)
from jarvis.system import (
    PROCESS_SORT_KEYS,
    PROCESS_STATE_NAMES,
    collect_basic_info,
    collect_cpu_usage,
    collect_disks,
    collect_environment_info,
    collect_hardware_info,
    collect_load_average,
    collect_memory,
    collect_processes,
    count_process_states,
    filter_processes,
    list_interfaces,
    parse_df_inodes,
    parse_interface_stats,
    parse_iostat,
    parse_mount_types,
    parse_netstat_connections,
    parse_protocol_stats,
    should_show_disk,
    sort_processes,
)
from jarvis.util import format_bytes, get_command_output


class SystemCommandsMixin:
    """
    Mixin class providing the commands which report on the state of the local machine.

    This mixin provides commands for:
    - system group: Container for all system commands
    - info: Operating system, hardware and environment
    - resource: CPU, memory and load
    - process: The processes with the highest resource usage
    - network: Interfaces, connections and protocol statistics
    - disk: File systems, inodes and I/O
    """

    @click.group("system", short_help="Command group for reports about the local machine.")
    @click.pass_obj
    def system_group(self) -> None:
        """
        This command group contains the commands which report on the local machine. Most of the
        information comes from the usual command line utilities (df, ps, netstat, ...). Sections
        whose utility is not available on the current platform are skipped or fall back to psutil.
        """
        pass

    @click.command("info", short_help="Show information about the system.")
    @click.option("-v", "--verbose", is_flag=True, help="Show additional details.")
    @click.pass_obj
    def system_info_command(self, verbose: bool) -> None:
        self.cons.print(RichHeader("💻 System Information"))
        self.cons.print(RichKeyValues("Basic", collect_basic_info(verbose, logger=self.logger)))
        self.cons.print(RichKeyValues("Hardware", collect_hardware_info(verbose, logger=self.logger)))
        self.cons.print(RichKeyValues("Environment", collect_environment_info(verbose)))

    @click.command("resource", short_help="Show the CPU, memory and disk usage.")
    @click.option("-v", "--verbose", is_flag=True, help="Also show the disks and the process states.")
    @click.pass_obj
    def system_resource_command(self, verbose: bool) -> None:
        """
        Shows the current CPU and memory usage as bars together with the load average.
        """
        self.cons.print(RichHeader("📊 Resource Usage"))

        self.cons.print("[bold]CPU[/bold]")
        cpu = collect_cpu_usage(logger=self.logger)
        self.cons.print(RichUsageBar(cpu))

        memory = collect_memory(logger=self.logger)
        self.cons.print("[bold]Memory[/bold]")
        self.cons.print(RichUsageBar(memory.usage))
        self.cons.print(
            f"  used {format_bytes(memory.used)} / total {format_bytes(memory.total)}, "
            f"free {format_bytes(memory.free)}"
        )

        load = collect_load_average(logger=self.logger)
        if load:
            self.cons.print(f"[bold]Load average[/bold] {escape(load)}")

        if verbose:
            disks = [disk for disk in collect_disks(logger=self.logger) if should_show_disk(disk.mount_point)]
            if disks:
                self.cons.print(RichDiskTable(disks))

            states = count_process_states(get_command_output("ps", "-eo", "stat", logger=self.logger))
            if states:
                self.cons.print(RichKeyValues("Process states", {
                    PROCESS_STATE_NAMES.get(state, state): str(count)
                    for state, count in sorted(states.items(), key=lambda item: -item[1])
                }))

    @click.command("process", short_help="Show the processes with the highest resource usage.")
    @click.option("-t", "--top", type=click.INT, default=10, show_default=True,
                  help="The number of processes to show.")
    @click.option("-s", "--sort", "sort_by", type=click.Choice(PROCESS_SORT_KEYS), default="cpu",
                  show_default=True, help="The key by which the processes are sorted.")
    @click.option("-f", "--filter", "filter_text", type=click.STRING, default="",
                  help="Only show processes whose name or command contains this string.")
    @click.option("-v", "--verbose", is_flag=True, help="Also show the command line.")
    @click.pass_obj
    def system_process_command(self, top: int, sort_by: str, filter_text: str, verbose: bool) -> None:
        processes = collect_processes(logger=self.logger)
        if filter_text:
            processes = filter_processes(processes, filter_text)

        if not processes:
            self.cons.print("[yellow]No matching processes found.[/yellow]")
            return

        processes = sort_processes(processes, sort_by)[:max(top, 0)]
        self.cons.print(RichHeader(f"⚙️  Top {len(processes)} processes by {sort_by}"))
        self.cons.print(RichProcessTable(processes, verbose=verbose))

    @click.command("network", short_help="Show the network interfaces and connections.")
    @click.option("-v", "--verbose", is_flag=True, help="Show additional details.")
    @click.option("-c", "--connections", is_flag=True, help="Show the active connections.")
    @click.option("-s", "--stats", is_flag=True, help="Show the protocol statistics.")
    @click.pass_obj
    def system_network_command(self, verbose: bool, connections: bool, stats: bool) -> None:
        """
        Lists the network interfaces with their addresses. Optionally shows a summary of the active
        TCP and UDP connections and the statistics of the tcp, udp and ip protocols.
        """
        self.cons.print(RichHeader("🌐 Network"))

        interface_output = get_command_output("netstat", "-i", "-b", logger=self.logger) if verbose else ""
        for interface in list_interfaces():
            if not verbose and not interface.ipv4:
                continue

            self.cons.print(RichInterface(interface, verbose=verbose))
            interface_stats = parse_interface_stats(interface_output, interface.name)
            if interface_stats is not None:
                self.cons.print(
                    f"  RX {interface_stats.rx_packets} packets ({format_bytes(interface_stats.rx_bytes)}), "
                    f"TX {interface_stats.tx_packets} packets ({format_bytes(interface_stats.tx_bytes)})"
                )

        if connections:
            self.cons.print("")
            self.cons.print("[bold]Connections[/bold]")
            for protocol in ("tcp", "udp"):
                output = get_command_output("netstat", "-an", "-p", protocol, logger=self.logger)
                if not output:
                    self.cons.print(f"  {protocol.upper()}: [bright_black]not available[/bright_black]")
                    continue

                summary = parse_netstat_connections(output, protocol)
                states = ", ".join(f"{state} {count}" for state, count in summary.states.items())
                self.cons.print(f"  {protocol.upper()}: {summary.count} connections {escape(states)}")
                if verbose:
                    for local, foreign, state in summary.samples:
                        self.cons.print(f"    {escape(local)} -> {escape(foreign)} {escape(state)}")

        if stats:
            self.cons.print("")
            self.cons.print("[bold]Statistics[/bold]")
            output = get_command_output("netstat", "-s", logger=self.logger)
            sections = parse_protocol_stats(output, verbose=verbose)
            if not sections:
                self.cons.print("  [bright_black]not available[/bright_black]")

            for protocol, lines in sections.items():
                self.cons.print(f"  [cyan]{protocol}[/cyan]")
                for line in lines:
                    self.cons.print(f"    {escape(line)}")

    @click.command("disk", short_help="Show the usage of the file systems.")
    @click.option("-v", "--verbose", is_flag=True, help="Show all file systems and the mount types.")
    @click.option("--io", is_flag=True, help="Show the I/O statistics of the disks.")
    @click.option("--inodes", is_flag=True, help="Show the inode usage instead of the size.")
    @click.pass_obj
    def system_disk_command(self, verbose: bool, io: bool, inodes: bool) -> None:
        self.cons.print(RichHeader("💾 Disks"))

        if inodes:
            disks = parse_df_inodes(get_command_output("df", "-i", logger=self.logger))
        else:
            disks = collect_disks(logger=self.logger)

        disks = [disk for disk in disks if should_show_disk(disk.mount_point, verbose)]
        if disks:
            self.cons.print(RichDiskTable(disks, inodes=inodes))
        else:
            self.cons.print("[yellow]No file systems found.[/yellow]")

        if verbose:
            types = parse_mount_types(get_command_output("mount", logger=self.logger))
            if types:
                self.cons.print(RichKeyValues("Mount types", {
                    fs_type: str(count) for fs_type, count in sorted(types.items())
                }))

        if io:
            devices = parse_iostat(get_command_output("iostat", "-d", logger=self.logger))
            if not devices:
                self.cons.print("[bright_black]I/O statistics not available[/bright_black]")

            for device in devices:
                self.cons.print(
                    f"[bold]{escape(device['device'])}[/bold] "
                    f"{device.get('kb_per_transfer', '-')} KB/t, "
                    f"{device.get('transfers', '-')} tps, "
                    f"{device.get('mb_per_second', '-')} MB/s"
                )
