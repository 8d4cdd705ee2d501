# -*- coding: utf-8 -*-
"""
Runtime module for session sandbox containers.

This module provides:
- Shell and container runtime CLI execution
- Host port allocation
- Container lifecycle management (build, create, start, stop, delete)
- Remote filesystem access inside containers
"""

from workbench.core.runtime.base import (
    SandboxError,
    PortExhaustedError,
    PortConflictError,
    PortUndeterminableError,
    RuntimeCommandError,
)
from workbench.core.runtime.process import ProcessExecutor, ProcessExecutionError
from workbench.core.runtime.client import ContainerRuntimeClient
from workbench.core.runtime.port_allocator import PortAllocator
from workbench.core.runtime.container_manager import ContainerLifecycleManager, get_container_manager
from workbench.core.runtime.filesystem import RemoteFileSystemBridge
from workbench.core.runtime.models import (
    CommandResult,
    ContainerHandle,
    ContainerInspection,
    ContainerSummary,
    Diagnostic,
    DirectoryEntry,
    FileNode,
    OperationResult,
    PortMapping,
    StartResult,
)

__all__ = [
    "SandboxError",
    "PortExhaustedError",
    "PortConflictError",
    "PortUndeterminableError",
    "RuntimeCommandError",
    "ProcessExecutor",
    "ProcessExecutionError",
    "ContainerRuntimeClient",
    "PortAllocator",
    "ContainerLifecycleManager",
    "get_container_manager",
    "RemoteFileSystemBridge",
    "CommandResult",
    "ContainerHandle",
    "ContainerInspection",
    "ContainerSummary",
    "Diagnostic",
    "DirectoryEntry",
    "FileNode",
    "OperationResult",
    "PortMapping",
    "StartResult",
]
