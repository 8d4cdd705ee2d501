"""Pytest configuration and fixtures for backend tests."""

import asyncio
import inspect
import json
import re
import shlex
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import pytest

# Add backend to path
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from workbench.core.runtime import (  # noqa: E402
    CommandResult,
    ContainerLifecycleManager,
    ContainerRuntimeClient,
    PortAllocator,
    ProcessExecutionError,
    RemoteFileSystemBridge,
)


def inner_command(command: str) -> str:
    """The shell command passed to ``<runtime> exec <id> sh -c``."""
    return shlex.split(command)[-1]


def command_failure(command: str = "", exit_code: int = 1, stderr: str = "boom") -> ProcessExecutionError:
    return ProcessExecutionError(command, exit_code, "", stderr)


class FakeExecutor:
    """
    Scripted stand-in for ProcessExecutor.

    Rules are (regex, responder) pairs checked in order; the first match
    answers. A responder is a stdout string, an exception to raise, or a
    callable (sync or async) taking the command and returning either.
    Unmatched commands succeed with empty output.
    """

    def __init__(self):
        self.calls: List[str] = []
        self._rules: List[Tuple[re.Pattern, Any]] = []

    def on(self, pattern: str, responder: Any) -> "FakeExecutor":
        self._rules.append((re.compile(pattern), responder))
        return self

    def matching(self, pattern: str) -> List[str]:
        regex = re.compile(pattern)
        return [c for c in self.calls if regex.search(c)]

    async def run(self, command: str, max_buffer: Optional[int] = None) -> CommandResult:
        self.calls.append(command)
        # Yield like a real subprocess so concurrent callers interleave
        await asyncio.sleep(0)

        for regex, responder in self._rules:
            if not regex.search(command):
                continue
            if callable(responder) and not isinstance(responder, BaseException):
                responder = responder(command)
                if inspect.isawaitable(responder):
                    responder = await responder
            if isinstance(responder, BaseException):
                raise responder
            return CommandResult(exit_code=0, stdout=responder or "", stderr="")

        return CommandResult(exit_code=0, stdout="", stderr="")


def make_inspect(
    container_id: str = "abc123",
    running: bool = False,
    host_port: Optional[int] = None,
    label_port: Optional[int] = None,
    image: str = "workbench-nextjs-session1",
    as_array: bool = True,
) -> str:
    """Render an inspect document like podman prints it."""
    labels = {"project": "workbench", "type": "nextjs-app"}
    if label_port is not None:
        labels["assignedPort"] = str(label_port)
    port_bindings = {}
    if host_port is not None:
        port_bindings["3000/tcp"] = [{"HostIp": "", "HostPort": str(host_port)}]
    doc = {
        "Id": container_id,
        "Name": "workbench-nextjs-session1",
        "Created": "2025-01-01T00:00:00Z",
        "State": {"Running": running, "Status": "running" if running else "exited"},
        "Config": {"Image": image, "Labels": labels},
        "HostConfig": {"PortBindings": port_bindings},
    }
    return json.dumps([doc] if as_array else doc)


def lsof_listening_on(*ports: int) -> Callable[[str], Any]:
    """lsof responder reporting listeners on the given ports only."""
    def responder(command: str):
        port = int(command.rsplit(":", 1)[-1])
        if port in ports:
            return f"COMMAND PID USER FD TYPE NODE NAME\nnode 42 app 20u IPv4 TCP *:{port} (LISTEN)\n"
        return command_failure(command)
    return responder


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def runtime_client(fake_executor) -> ContainerRuntimeClient:
    return ContainerRuntimeClient(
        executor=fake_executor,
        binary="podman",
        project_label="workbench",
        type_label="nextjs-app",
        container_port=3000,
        large_max_buffer=50 * 1024 * 1024,
    )


@pytest.fixture
def allocator(runtime_client) -> PortAllocator:
    return PortAllocator(runtime_client, base_port=8000, scan_window=1000)


@pytest.fixture
def containerfile(tmp_path) -> Path:
    path = tmp_path / "Containerfile"
    path.write_text("FROM node:20-alpine\nEXPOSE 3000\n")
    return path


@pytest.fixture
def manager(runtime_client, allocator, containerfile) -> ContainerLifecycleManager:
    return ContainerLifecycleManager(
        client=runtime_client,
        allocator=allocator,
        image_prefix="workbench-nextjs",
        containerfile_path=containerfile,
    )


@pytest.fixture
def write_temp_dir(tmp_path) -> Path:
    path = tmp_path / "write-tmp"
    path.mkdir()
    return path


@pytest.fixture
def bridge(runtime_client, write_temp_dir) -> RemoteFileSystemBridge:
    return RemoteFileSystemBridge(
        client=runtime_client,
        base_path="/app/my-nextjs-app",
        max_read_bytes=10_000_000,
        read_batch_size=50,
        temp_dir=str(write_temp_dir),
    )
