"""Shared fixtures: fake cgroupfs and Docker containers directories."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dockerprom.core.schemas import CgroupDriver, CgroupVersion


class FakeCgroupfs:
    """Builds a cgroupfs tree the way Docker lays it out for a version/driver pair."""

    def __init__(self, root: Path, version: CgroupVersion, driver: CgroupDriver) -> None:
        self.root = root
        self.version = version
        self.driver = driver
        self.root.mkdir(parents=True, exist_ok=True)
        for resource in ("memory", "cpu", "blkio"):
            self.resource_dir(resource).mkdir(parents=True, exist_ok=True)

    def resource_dir(self, resource: str) -> Path:
        base = self.root / resource if self.version == CgroupVersion.V1 else self.root
        return base / ("docker" if self.driver == CgroupDriver.CGROUPFS else "system.slice")

    def dir_name(self, container_id: str) -> str:
        if self.driver == CgroupDriver.SYSTEMD:
            return f"docker-{container_id}.scope"
        return container_id

    def container_dir(self, resource: str, container_id: str) -> Path:
        path = self.resource_dir(resource) / self.dir_name(container_id)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def add_memory(self, container_id: str, usage_bytes: int) -> None:
        name = "memory.usage_in_bytes" if self.version == CgroupVersion.V1 else "memory.current"
        (self.container_dir("memory", container_id) / name).write_text(f"{usage_bytes}\n")

    def add_cpu(self, container_id: str, user_seconds: float, system_seconds: float) -> None:
        path = self.container_dir("cpu", container_id)
        if self.version == CgroupVersion.V1:
            (path / "cpuacct.usage_user").write_text(f"{int(user_seconds * 1e9)}\n")
            (path / "cpuacct.usage_sys").write_text(f"{int(system_seconds * 1e9)}\n")
        else:
            (path / "cpu.stat").write_text(
                f"usage_usec {int((user_seconds + system_seconds) * 1e6)}\n"
                f"user_usec {int(user_seconds * 1e6)}\n"
                f"system_usec {int(system_seconds * 1e6)}\n"
                "nr_periods 0\n"
                "nr_throttled 0\n"
                "throttled_usec 0\n"
            )

    def add_blkio(self, container_id: str, read_bytes: int, write_bytes: int) -> None:
        path = self.container_dir("blkio", container_id)
        if self.version == CgroupVersion.V1:
            (path / "blkio.throttle.io_service_bytes").write_text(
                f"8:0 Read {read_bytes}\n"
                f"8:0 Write {write_bytes}\n"
                f"8:0 Sync {read_bytes + write_bytes}\n"
                "8:0 Async 0\n"
                "8:0 Discard 0\n"
                f"8:0 Total {read_bytes + write_bytes}\n"
                f"Total {read_bytes + write_bytes}\n"
            )
        else:
            (path / "io.stat").write_text(
                f"8:0 rbytes={read_bytes} wbytes={write_bytes} rios=10 wios=5 dbytes=0 dios=0\n"
            )

    def add_container(
        self,
        container_id: str,
        memory: int = 104857600,
        cpu: tuple[float, float] = (2.0, 0.5),
        blkio: tuple[int, int] = (4096, 8192),
    ) -> None:
        self.add_memory(container_id, memory)
        self.add_cpu(container_id, *cpu)
        self.add_blkio(container_id, *blkio)


@pytest.fixture
def make_cgroupfs(tmp_path: Path):
    """Factory for a fake cgroupfs under ``tmp_path / "cgroup"``."""

    def _make(
        version: CgroupVersion = CgroupVersion.V2,
        driver: CgroupDriver = CgroupDriver.SYSTEMD,
    ) -> FakeCgroupfs:
        return FakeCgroupfs(tmp_path / "cgroup", version, driver)

    return _make


@pytest.fixture
def containers_dir(tmp_path: Path) -> Path:
    path = tmp_path / "containers"
    path.mkdir()
    return path


@pytest.fixture
def write_descriptor(containers_dir: Path):
    """Write a Docker ``config.v2.json`` for a container."""

    def _write(
        container_id: str,
        name: str = "/web",
        image: str = "nginx:latest",
        labels: dict[str, str] | None = None,
    ) -> Path:
        path = containers_dir / container_id
        path.mkdir(exist_ok=True)
        descriptor = {
            "ID": container_id,
            "Name": name,
            "Created": "2024-06-01T12:00:00.000000000Z",
            "State": {"Running": True, "Pid": 4242},
            "Config": {
                "Hostname": container_id[:12],
                "Image": image,
                "Labels": labels,
            },
        }
        config_path = path / "config.v2.json"
        config_path.write_text(json.dumps(descriptor))
        return config_path

    return _write
