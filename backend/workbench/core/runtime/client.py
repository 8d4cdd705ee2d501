# -*- coding: utf-8 -*-
"""
Container runtime CLI client.

Thin command builders for podman/docker layered on ProcessExecutor.
Nothing here is cached: every call goes to the runtime.
"""

import json
import logging
import shlex
from typing import Any, List, Optional

from workbench.config.settings import get_settings
from workbench.core.runtime.base import RuntimeCommandError
from workbench.core.runtime.constants import (
    ASSIGNED_PORT_LABEL_KEY,
    MISSING_LABEL_VALUE,
    PROJECT_LABEL_KEY,
    TYPE_LABEL_KEY,
)
from workbench.core.runtime.models import (
    CommandResult,
    ContainerInspection,
    ContainerSummary,
    parse_port,
)
from workbench.core.runtime.process import ProcessExecutionError, ProcessExecutor

logger = logging.getLogger(__name__)


def parse_json_documents(output: str) -> List[Any]:
    """
    Parse runtime JSON output into a list of documents.

    Accepts a JSON array, a single object, or newline-delimited objects
    (docker prints one object per line for ``--format json``).
    """
    text = output.strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = [json.loads(line) for line in text.splitlines() if line.strip()]
    return data if isinstance(data, list) else [data]


class ContainerRuntimeClient:
    """Builds and runs container runtime commands."""

    def __init__(
        self,
        executor: Optional[ProcessExecutor] = None,
        binary: Optional[str] = None,
        project_label: Optional[str] = None,
        type_label: Optional[str] = None,
        container_port: Optional[int] = None,
        large_max_buffer: Optional[int] = None,
    ):
        settings = get_settings()
        self.executor = executor or ProcessExecutor(settings.default_max_buffer)
        self.binary = binary or settings.runtime_binary
        self.project_label = project_label or settings.project_label
        self.type_label = type_label or settings.type_label
        self.container_port = container_port or settings.container_port
        self.large_max_buffer = large_max_buffer or settings.large_max_buffer

    # ------------------------------------------------------------------
    # Command builders
    # ------------------------------------------------------------------

    def build_command(self, image: str, context_dir: str) -> str:
        return f"{self.binary} build -t {shlex.quote(image)} --rm --force-rm {shlex.quote(context_dir)}"

    def create_command(self, name: str, host_port: int, image: str) -> str:
        labels = [
            f"{PROJECT_LABEL_KEY}={self.project_label}",
            f"{TYPE_LABEL_KEY}={self.type_label}",
            f"{ASSIGNED_PORT_LABEL_KEY}={host_port}",
        ]
        label_args = " ".join(f"--label {shlex.quote(label)}" for label in labels)
        return (
            f"{self.binary} create --name {shlex.quote(name)} "
            f"-p {host_port}:{self.container_port} "
            f"{label_args} {shlex.quote(image)}"
        )

    def start_command(self, ref: str) -> str:
        return f"{self.binary} start {shlex.quote(ref)}"

    def stop_command(self, ref: str) -> str:
        return f"{self.binary} stop {shlex.quote(ref)}"

    def remove_command(self, ref: str, force: bool = True) -> str:
        flag = " -f" if force else ""
        return f"{self.binary} rm{flag} {shlex.quote(ref)}"

    def remove_image_command(self, image: str) -> str:
        return f"{self.binary} rmi -f {shlex.quote(image)}"

    def inspect_command(self, ref: str) -> str:
        return f"{self.binary} inspect {shlex.quote(ref)}"

    def exec_command(self, ref: str, command: str) -> str:
        return f"{self.binary} exec {shlex.quote(ref)} sh -c {shlex.quote(command)}"

    def copy_in_command(self, local_path: str, ref: str, remote_path: str) -> str:
        return f"{self.binary} cp {shlex.quote(local_path)} {shlex.quote(f'{ref}:{remote_path}')}"

    def list_ports_command(self) -> str:
        template = "{{.Labels.%s}}" % ASSIGNED_PORT_LABEL_KEY
        return (
            f"{self.binary} ps -a --filter label={PROJECT_LABEL_KEY}={self.project_label} "
            f"--format {shlex.quote(template)}"
        )

    def list_json_command(self) -> str:
        return f"{self.binary} ps -a --filter label={PROJECT_LABEL_KEY}={self.project_label} --format json"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def _run(self, operation: str, command: str, max_buffer: Optional[int] = None) -> CommandResult:
        try:
            return await self.executor.run(command, max_buffer=max_buffer)
        except ProcessExecutionError as e:
            raise RuntimeCommandError(
                message=f"{operation} failed: {(e.stderr or e.stdout).strip() or e}",
                operation=operation,
                details={"command": command, "exit_code": e.exit_code},
            ) from e

    async def version(self) -> str:
        result = await self._run("version", f"{self.binary} --version")
        return result.stdout.strip()

    async def build_image(self, image: str, context_dir: str) -> CommandResult:
        return await self._run("build", self.build_command(image, context_dir), self.large_max_buffer)

    async def create_container(self, name: str, host_port: int, image: str) -> str:
        """Create a container and return its runtime id."""
        result = await self._run("create", self.create_command(name, host_port, image))
        return result.stdout.strip()

    async def start_container(self, ref: str) -> None:
        await self._run("start", self.start_command(ref))

    async def stop_container(self, ref: str) -> None:
        await self._run("stop", self.stop_command(ref))

    async def remove_container(self, ref: str, force: bool = True) -> None:
        await self._run("rm", self.remove_command(ref, force))

    async def remove_image(self, image: str) -> None:
        await self._run("rmi", self.remove_image_command(image))

    async def inspect_container(self, ref: str) -> ContainerInspection:
        result = await self._run("inspect", self.inspect_command(ref))
        try:
            return ContainerInspection.from_inspect(
                json.loads(result.stdout), container_port=self.container_port
            )
        except ValueError as e:
            raise RuntimeCommandError(
                message=f"inspect failed: unreadable output ({e})",
                operation="inspect",
                details={"ref": ref},
            ) from e

    async def exec(self, ref: str, command: str) -> str:
        """Run a shell command inside the container and return stdout."""
        result = await self._run("exec", self.exec_command(ref, command), self.large_max_buffer)
        return result.stdout

    async def copy_into_container(self, local_path: str, ref: str, remote_path: str) -> CommandResult:
        return await self._run("cp", self.copy_in_command(local_path, ref, remote_path))

    async def list_assigned_ports(self) -> List[int]:
        """Ports recorded in the assignedPort label of every project container."""
        result = await self._run("ps", self.list_ports_command())
        ports = []
        for line in result.stdout.splitlines():
            value = line.strip()
            if not value or value == MISSING_LABEL_VALUE:
                continue
            port = parse_port(value)
            if port is not None:
                ports.append(port)
        return ports

    async def list_project_containers(self) -> List[ContainerSummary]:
        result = await self._run("ps", self.list_json_command())
        return [
            ContainerSummary.from_ps(doc)
            for doc in parse_json_documents(result.stdout)
            if isinstance(doc, dict)
        ]
