"""Resource readers for Docker container cgroups.

Metrics sourced, per cgroup version:

=========  ===============================================  ============================
resource   v1                                               v2
=========  ===============================================  ============================
memory     memory.usage_in_bytes                            memory.current
cpu        cpuacct.usage_user, cpuacct.usage_sys (ns)       cpu.stat user_usec/system_usec
blkio      blkio.throttle.io_service_bytes Read/Write       io.stat rbytes=/wbytes=
=========  ===============================================  ============================
"""

from __future__ import annotations

from pathlib import Path

from dockerprom.core.schemas import CgroupVersion
from dockerprom.monitoring.base import BaseReader, parse_flat_keyed, read_single_value
from dockerprom.monitoring.layout import CgroupLayout

NANOSECONDS_PER_SECOND = 1_000_000_000
MICROSECONDS_PER_SECOND = 1_000_000


class MemoryReader(BaseReader):
    """Current memory usage per container, in bytes."""

    resource = "memory"
    fields = ("usage",)

    def read_container(self, path: Path) -> dict[str, float | int]:
        if self.layout.version == CgroupVersion.V1:
            usage = read_single_value(path / "memory.usage_in_bytes")
        else:
            usage = read_single_value(path / "memory.current")
        return {"usage": usage}


class CpuReader(BaseReader):
    """User and system CPU time per container, in seconds."""

    resource = "cpu"
    fields = ("user", "system")

    def read_container(self, path: Path) -> dict[str, float | int]:
        if self.layout.version == CgroupVersion.V1:
            user_ns = read_single_value(path / "cpuacct.usage_user")
            sys_ns = read_single_value(path / "cpuacct.usage_sys")
            return {
                "user": user_ns / NANOSECONDS_PER_SECOND,
                "system": sys_ns / NANOSECONDS_PER_SECOND,
            }

        return self._read_cpu_stat(path / "cpu.stat")

    def _read_cpu_stat(self, cpu_stat_path: Path) -> dict[str, float | int]:
        """Read cpu.stat file.

        Format:
            usage_usec 123456
            user_usec 100000
            system_usec 23456
        """
        stat = parse_flat_keyed(
            cpu_stat_path.read_text(), cpu_stat_path, ("user_usec", "system_usec")
        )
        return {
            "user": stat["user_usec"] / MICROSECONDS_PER_SECOND,
            "system": stat["system_usec"] / MICROSECONDS_PER_SECOND,
        }


class BlkioReader(BaseReader):
    """Bytes read and written per container, summed over all block devices."""

    resource = "blkio"
    fields = ("read", "write")

    def read_container(self, path: Path) -> dict[str, float | int]:
        if self.layout.version == CgroupVersion.V1:
            return self._read_io_service_bytes(path / "blkio.throttle.io_service_bytes")
        return self._read_io_stat(path / "io.stat")

    def _read_io_service_bytes(self, io_path: Path) -> dict[str, float | int]:
        """Read blkio.throttle.io_service_bytes file.

        Format (per device and operation, then a grand total):
            8:0 Read 4096
            8:0 Write 8192
            8:0 Sync 12288
            ...
            Total 12288
        """
        total_read = 0
        total_write = 0
        for line in io_path.read_text().splitlines():
            parts = line.split()
            if len(parts) < 2:
                continue
            op, value = parts[-2], parts[-1]
            if op == "Read":
                total_read += int(value)
            elif op == "Write":
                total_write += int(value)
        return {"read": total_read, "write": total_write}

    def _read_io_stat(self, io_stat_path: Path) -> dict[str, float | int]:
        """Read io.stat file.

        Format (per device):
            8:0 rbytes=12345 wbytes=67890 rios=100 wios=50 dbytes=0 dios=0
        """
        total_read = 0
        total_write = 0
        for line in io_stat_path.read_text().splitlines():
            for token in line.split():
                key, sep, value = token.partition("=")
                if not sep:
                    continue
                if key == "rbytes":
                    total_read += int(value)
                elif key == "wbytes":
                    total_write += int(value)
        return {"read": total_read, "write": total_write}


def default_readers(layout: CgroupLayout) -> list[BaseReader]:
    """Readers in output order: memory, CPU, block I/O."""
    return [MemoryReader(layout), CpuReader(layout), BlkioReader(layout)]
