"""Shared fixtures for tarnertop tests."""

import pytest

from tarnertop.config import AppConfig
from tarnertop.models import DiskUsage, HostInfo, HostStats, ProcessRecord, Snapshot
from tarnertop.settings import SettingsStore
from tarnertop.state import Controller


def make_record(
    pid: int,
    name: str = "proc",
    cpu: float = 0.0,
    mem: int = 0,
    parent_pid: int | None = 1,
) -> ProcessRecord:
    return ProcessRecord(
        pid=pid,
        parent_pid=parent_pid,
        name=name,
        cpu_usage=cpu,
        memory_usage=mem,
        run_time=60,
        status="Sleeping",
        accumulated_cpu_time=1500,
        disk_usage=DiskUsage(10, 20, 100, 200),
    )


class FakeProvider:
    """In-memory snapshot provider with scripted kill results."""

    def __init__(self, processes=(), cpu_core_count=4, total_memory_bytes=1000):
        self.host_info = HostInfo(os_name="TestOS", hostname="testhost")
        self.cpu_core_count = cpu_core_count
        self.total_memory_bytes = total_memory_bytes
        self.processes = list(processes)
        self.refresh_count = 0
        self.killed: list[int] = []
        self.kill_result = True

    def refresh(self) -> None:
        self.refresh_count += 1

    def get_processes(self) -> list[ProcessRecord]:
        return list(self.processes)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            processes=tuple(self.processes),
            host_stats=HostStats(self.cpu_core_count, self.total_memory_bytes, 500),
        )

    def kill(self, pid: int) -> bool:
        self.killed.append(pid)
        return self.kill_result


@pytest.fixture
def config(tmp_path) -> AppConfig:
    export_dir = tmp_path / "downloads"
    export_dir.mkdir()
    return AppConfig(
        config_dir=tmp_path / "config",
        export_dir=export_dir,
        refresh_interval=0.1,
        toast_duration=3.0,
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(
        [
            make_record(10, "zebra", cpu=10.0, mem=300, parent_pid=1),
            make_record(20, "apple", cpu=20.0, mem=100, parent_pid=10),
            make_record(30, "middle", cpu=30.0, mem=200, parent_pid=None),
        ]
    )


@pytest.fixture
def settings_store(config) -> SettingsStore:
    return SettingsStore(config.settings_path)


@pytest.fixture
def controller(provider, settings_store, config) -> Controller:
    return Controller(provider, settings_store, config)
