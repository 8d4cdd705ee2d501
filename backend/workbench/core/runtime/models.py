# -*- coding: utf-8 -*-
"""
Data models for the sandbox runtime.

Raw runtime output (inspect documents, ``ps --format json`` rows) is
normalized here, right after parsing, so nothing past the client sees the
runtime's own JSON shapes.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from workbench.core.runtime.constants import ASSIGNED_PORT_LABEL_KEY

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_port(value: Any) -> Optional[int]:
    """Parse a port from a label or binding value, None when not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


@dataclass
class Diagnostic:
    """An advisory failure that did not stop the operation."""
    operation: str
    message: str


@dataclass
class OperationResult(Generic[T]):
    """Successful result plus the advisory failures collected on the way."""
    value: Optional[T] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def add_diagnostic(self, operation: str, message: str) -> None:
        logger.warning(f"[{operation}] {message}")
        self.diagnostics.append(Diagnostic(operation=operation, message=message))

    @property
    def clean(self) -> bool:
        """Whether the operation finished without advisory failures."""
        return not self.diagnostics


@dataclass
class CommandResult:
    """Result of a finished shell command."""
    exit_code: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        """Combined output."""
        return self.stdout + self.stderr

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass
class ContainerHandle:
    """Identifier and host port of a freshly created container."""
    id: str
    port: int


@dataclass
class StartResult:
    port: int


@dataclass
class ContainerInspection:
    """Canonical view of a runtime inspect document."""
    id: str
    name: str
    image: str
    running: bool
    bound_port: Optional[int] = None
    labels: Dict[str, str] = field(default_factory=dict)
    created: Optional[str] = None

    @property
    def label_port(self) -> Optional[int]:
        return parse_port(self.labels.get(ASSIGNED_PORT_LABEL_KEY))

    @classmethod
    def from_inspect(cls, raw: Any, container_port: int = 3000) -> "ContainerInspection":
        """Build from ``inspect`` output, which is an object or an array of them."""
        if isinstance(raw, list):
            if not raw:
                raise ValueError("inspect returned an empty array")
            raw = raw[0]
        if not isinstance(raw, dict):
            raise ValueError(f"unexpected inspect payload: {type(raw).__name__}")

        state = raw.get("State") or {}
        config = raw.get("Config") or {}
        key = f"{container_port}/tcp"

        bound_port = None
        # HostConfig holds the requested mapping even while stopped;
        # NetworkSettings only has it for running containers.
        for bindings in (
            ((raw.get("HostConfig") or {}).get("PortBindings") or {}).get(key),
            ((raw.get("NetworkSettings") or {}).get("Ports") or {}).get(key),
        ):
            if bindings:
                bound_port = parse_port(bindings[0].get("HostPort"))
                if bound_port is not None:
                    break

        image = config.get("Image") or raw.get("ImageName") or raw.get("Image") or ""

        return cls(
            id=raw.get("Id", ""),
            name=(raw.get("Name") or "").lstrip("/"),
            image=image,
            running=bool(state.get("Running", False)),
            bound_port=bound_port,
            labels=dict(config.get("Labels") or {}),
            created=raw.get("Created"),
        )


@dataclass
class PortMapping:
    private: Optional[int]
    public: Optional[int]
    type: Optional[str]

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "PortMapping":
        # podman uses snake_case keys, docker the CamelCase ones
        private = raw.get("container_port", raw.get("PrivatePort"))
        public = raw.get("host_port", raw.get("PublicPort"))
        return cls(
            private=parse_port(private),
            public=parse_port(public),
            type=raw.get("protocol") or raw.get("Type"),
        )


@dataclass
class ContainerSummary:
    """One project container as reported by ``ps``."""
    id: str
    name: str
    status: str
    image: str
    created: str
    assigned_port: Optional[int]
    url: Optional[str]
    ports: List[PortMapping] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_ps(cls, raw: Dict[str, Any]) -> "ContainerSummary":
        labels = raw.get("Labels") or {}
        if not isinstance(labels, dict):
            # docker's json flavour renders labels as "k=v,k2=v2"
            labels = dict(
                item.split("=", 1) for item in str(labels).split(",") if "=" in item
            )
        assigned_port = parse_port(labels.get(ASSIGNED_PORT_LABEL_KEY))

        names = raw.get("Names")
        if isinstance(names, list) and names:
            name = names[0]
        elif isinstance(names, str) and names:
            name = names
        else:
            name = raw.get("Name") or ""

        created = raw.get("Created")
        if isinstance(created, (int, float)) and not isinstance(created, bool):
            created = datetime.fromtimestamp(created, tz=timezone.utc).isoformat()
        elif not created:
            created = datetime.now(timezone.utc).isoformat()

        ports = raw.get("Ports") or []
        if not isinstance(ports, list):
            ports = []

        return cls(
            id=raw.get("Id") or raw.get("ID") or "",
            name=name.replace("/", "", 1),
            status=raw.get("State") or "",
            image=raw.get("Image") or "",
            created=str(created),
            assigned_port=assigned_port,
            url=f"http://localhost:{assigned_port}" if assigned_port else None,
            ports=[PortMapping.from_raw(p) for p in ports if isinstance(p, dict)],
            labels=labels,
        )


@dataclass
class FileNode:
    """A file or directory inside a container."""
    name: str
    path: str
    type: str
    children: Optional[List["FileNode"]] = None
    content: Optional[str] = None

    @property
    def is_directory(self) -> bool:
        return self.type == "directory"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "path": self.path, "type": self.type}
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        if self.content is not None:
            data["content"] = self.content
        return data


@dataclass
class DirectoryEntry:
    """One row of ``ls -la`` output."""
    name: str
    type: str
    permissions: str
    size: str
    modified: str
