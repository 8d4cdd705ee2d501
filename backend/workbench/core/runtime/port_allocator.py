# -*- coding: utf-8 -*-
"""
Host port allocation for sandbox containers.
"""

import logging
from typing import Optional, Set, FrozenSet

from workbench.config.settings import get_settings
from workbench.core.runtime.base import PortExhaustedError
from workbench.core.runtime.client import ContainerRuntimeClient
from workbench.core.runtime.process import ProcessExecutionError

logger = logging.getLogger(__name__)


class PortAllocator:
    """
    Hands out unique, currently free host ports.

    A candidate must be absent from three sources: the assignedPort labels of
    every project container (survives a process restart), the in-memory
    reservations of this process (covers containers still being created),
    and the OS listener table (covers everything else, best effort).

    Reservations are never persisted; the runtime stays the source of truth.
    """

    def __init__(
        self,
        client: ContainerRuntimeClient,
        base_port: Optional[int] = None,
        scan_window: Optional[int] = None,
    ):
        settings = get_settings()
        self._client = client
        self._base_port = base_port or settings.base_port
        self._scan_window = scan_window or settings.port_scan_window
        self._reserved: Set[int] = set()

    @property
    def base_port(self) -> int:
        return self._base_port

    @property
    def reserved_ports(self) -> FrozenSet[int]:
        return frozenset(self._reserved)

    def is_reserved(self, port: int) -> bool:
        return port in self._reserved

    def reserve(self, port: int) -> None:
        """Record a port as held by this process."""
        self._reserved.add(port)

    def release(self, port: int) -> None:
        """Drop a reservation. Releasing an unreserved port is a no-op."""
        self._reserved.discard(port)

    async def _runtime_assigned_ports(self) -> Set[int]:
        try:
            return set(await self._client.list_assigned_ports())
        except Exception as e:
            logger.warning(f"Could not list assigned ports from runtime: {e}")
            return set()

    async def is_port_available(self, port: int) -> bool:
        """
        Probe the OS for a listener on the port.

        lsof exits non-zero when nothing matches, and a missing lsof fails the
        same way; both count as available.
        """
        try:
            result = await self._client.executor.run(f"lsof -i :{port}")
        except ProcessExecutionError:
            return True
        return result.stdout.strip() == ""

    async def allocate(self, start_port: Optional[int] = None) -> int:
        """
        Reserve and return the first free port at or above start_port.

        Args:
            start_port: First candidate (defaults to the configured base port)

        Returns:
            int: The reserved port

        Raises:
            PortExhaustedError: If the scan window holds no free port
        """
        start = start_port or self._base_port
        assigned = await self._runtime_assigned_ports()
        taken = assigned | self._reserved

        for candidate in range(start, start + self._scan_window):
            if candidate in taken:
                continue
            if not await self.is_port_available(candidate):
                continue
            # Re-checked after the probe: a concurrent allocate may have
            # claimed it while we were suspended.
            if candidate in self._reserved:
                continue
            self._reserved.add(candidate)
            logger.info(f"Allocated port {candidate}")
            return candidate

        raise PortExhaustedError(
            message=f"No available ports found in range {start}-{start + self._scan_window - 1}",
            operation="allocate_port",
            details={"start_port": start, "scan_window": self._scan_window},
        )
