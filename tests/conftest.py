"""
Pytest configuration and shared fixtures for PodBar tests.

Provides fakes for subprocess execution, timers and the probe executor so
controller behavior can be driven deterministically.
"""

import json
import pytest
from concurrent.futures import Future
from unittest.mock import MagicMock, patch
from pathlib import Path
from typing import Callable, List, Optional
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from common.exceptions import SpawnFailedError  # noqa: E402
from vm_monitor.config import MonitorConfig  # noqa: E402
from vm_monitor.core.state import CommandResult  # noqa: E402


# ============ Environment Fixtures ============

@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Provide temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


# ============ Subprocess Fixtures ============

@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for tests."""
    with patch('subprocess.run') as mock_run:
        mock_run.return_value = MagicMock(
            returncode=0,
            stdout=b"",
        )
        yield mock_run


@pytest.fixture
def mock_subprocess_popen():
    """Mock subprocess.Popen for tests."""
    with patch('subprocess.Popen') as mock_popen:
        mock_proc = MagicMock()
        mock_proc.pid = 4242
        mock_proc.returncode = 0
        mock_proc.wait.return_value = 0
        mock_popen.return_value = mock_proc
        yield mock_popen


def machine_info(state: str) -> bytes:
    """`podman machine info --format json` output for a given MachineState."""
    return json.dumps({
        "Host": {
            "Arch": "arm64",
            "CurrentMachine": "podman-machine-default",
            "MachineState": state,
            "NumberOfMachines": 1,
        },
        "Version": {"Version": "5.2.0"},
    }).encode()


class FakeRunner:
    """
    Stand-in for CommandRunner.

    Responses are looked up by the first argument ("machine", "ps", or the
    binary name for `which`). A response may be a CommandResult, an
    exception instance to raise, or a list consumed in order.
    """

    def __init__(self):
        self.timeout = None
        self.responses = {}
        self.calls: List[tuple] = []
        self.launched: List[tuple] = []

    def set(self, key: str, response):
        self.responses[key] = response

    def set_machine_state(self, *states: str):
        self.responses["machine"] = [
            CommandResult(0, machine_info(state)) for state in states
        ]

    def run(self, path, args):
        args = tuple(args)
        self.calls.append((path, args))
        response = self.responses.get(args[0], CommandResult(0, b""))
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return response

    def launch(self, path, args):
        self.launched.append((path, tuple(args)))
        return MagicMock(pid=1)

    @property
    def probe_count(self) -> int:
        return sum(1 for _, args in self.calls if args[:2] == ("machine", "info"))


class FakeHandle:
    """TimerHandle driven by FakeScheduler."""

    def __init__(self, scheduler, delay: float, callback: Callable[[], None]):
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self):
        self.cancelled = True
        self.scheduler.events.append(("cancel", self))

    def fire(self):
        assert self.active, "timer already cancelled or fired"
        self.fired = True
        self.callback()


class FakeScheduler:
    """Records call_later requests; tests fire them explicitly."""

    def __init__(self):
        self.handles: List[FakeHandle] = []
        self.events: List[tuple] = []

    def call_later(self, delay, callback):
        handle = FakeHandle(self, delay, callback)
        self.handles.append(handle)
        self.events.append(("schedule", handle))
        return handle

    @property
    def active(self) -> List[FakeHandle]:
        return [h for h in self.handles if h.active]

    def active_with_delay(self, delay: float) -> List[FakeHandle]:
        return [h for h in self.active if h.delay == delay]

    def cancel_all(self):
        for handle in self.active:
            handle.cancel()


class InlineExecutor:
    """Executor that runs submitted work immediately on the calling thread."""

    def __init__(self):
        self.is_shutdown = False

    def submit(self, fn, *args, **kwargs):
        if self.is_shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait=True, cancel_futures=False):
        self.is_shutdown = True


@pytest.fixture
def fake_runner() -> FakeRunner:
    runner = FakeRunner()
    runner.set("podman", CommandResult(0, b"/usr/local/bin/podman\n"))
    return runner


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()


@pytest.fixture
def make_controller(fake_runner, fake_scheduler, inline_executor):
    """Factory for a VMController wired to the fakes."""
    from vm_monitor.core.controller import VMController

    created = []

    def factory(config: Optional[MonitorConfig] = None) -> VMController:
        controller = VMController(
            config=config or MonitorConfig(),
            runner=fake_runner,
            scheduler=fake_scheduler,
            executor=inline_executor,
        )
        created.append(controller)
        return controller

    yield factory

    for controller in created:
        controller.shutdown()


@pytest.fixture
def spawn_failure() -> SpawnFailedError:
    return SpawnFailedError(
        "/opt/homebrew/bin/podman", ["machine", "info"],
        cause=FileNotFoundError(2, "No such file or directory"),
    )
