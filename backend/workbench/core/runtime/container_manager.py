# -*- coding: utf-8 -*-
"""
Container lifecycle manager for session sandboxes.

This module handles:
- Image build from the project Containerfile
- Container creation with a host port mapping and recovery labels
- Start/stop/delete driven by live runtime inspection
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from workbench.config.settings import get_settings
from workbench.core.runtime.base import (
    PortConflictError,
    PortUndeterminableError,
    SandboxError,
    container_operation,
)
from workbench.core.runtime.client import ContainerRuntimeClient
from workbench.core.runtime.constants import BUILD_DIR_PREFIX, CONTAINERFILE_NAME
from workbench.core.runtime.models import (
    ContainerHandle,
    ContainerInspection,
    ContainerSummary,
    OperationResult,
    StartResult,
)
from workbench.core.runtime.port_allocator import PortAllocator

logger = logging.getLogger(__name__)


class ContainerLifecycleManager:
    """
    Manager for sandbox container lifecycle.

    Running state and ports always come from ``inspect``; the allocator's
    reservations are only consulted to avoid handing a port out twice.
    """

    def __init__(
        self,
        client: Optional[ContainerRuntimeClient] = None,
        allocator: Optional[PortAllocator] = None,
        image_prefix: Optional[str] = None,
        containerfile_path: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize container manager.

        Args:
            client: Runtime CLI client
            allocator: Port allocator (one per process)
            image_prefix: Prefix for image and container names
            containerfile_path: Containerfile copied into every build context
        """
        settings = get_settings()
        self._client = client or ContainerRuntimeClient()
        self._allocator = allocator or PortAllocator(self._client)
        self._image_prefix = image_prefix or settings.image_prefix
        self._containerfile_path = Path(containerfile_path or settings.containerfile_path)

    @property
    def client(self) -> ContainerRuntimeClient:
        return self._client

    @property
    def allocator(self) -> PortAllocator:
        return self._allocator

    def image_name(self, session_id: str) -> str:
        return f"{self._image_prefix}-{session_id}"

    def container_name(self, session_id: str) -> str:
        return f"{self._image_prefix}-{session_id}"

    def owns_image(self, image: str) -> bool:
        """Whether an image name follows this manager's naming scheme."""
        return bool(image) and f"{self._image_prefix}-" in image

    # ------------------------------------------------------------------
    # Build / create
    # ------------------------------------------------------------------

    async def build_image(self, session_id: str) -> OperationResult[str]:
        """
        Build the session image from a throwaway build context.

        Args:
            session_id: Session identifier

        Returns:
            OperationResult holding the image name

        Raises:
            RuntimeCommandError: If the runtime build fails
        """
        result: OperationResult[str] = OperationResult()
        image = self.image_name(session_id)
        build_dir = tempfile.mkdtemp(prefix=f"{BUILD_DIR_PREFIX}{session_id}-")

        try:
            shutil.copyfile(self._containerfile_path, os.path.join(build_dir, CONTAINERFILE_NAME))
            logger.info(f"Building image: {image}")
            await self._client.build_image(image, build_dir)
            logger.info(f"Image {image} created successfully")
        finally:
            try:
                shutil.rmtree(build_dir)
            except OSError as e:
                result.add_diagnostic("build_image", f"Could not remove build directory {build_dir}: {e}")

        result.value = image
        return result

    async def cleanup_image(self, session_id: str) -> OperationResult[None]:
        """Remove a session image, typically after a failed build."""
        result: OperationResult[None] = OperationResult()
        image = self.image_name(session_id)
        try:
            await self._client.remove_image(image)
            logger.info(f"Cleaned up image: {image}")
        except SandboxError as e:
            result.add_diagnostic("cleanup_image", f"Could not remove image {image}: {e}")
        return result

    async def create_container(self, image: str, session_id: str) -> ContainerHandle:
        """
        Create and start a container for the session.

        Args:
            image: Image to run
            session_id: Session identifier

        Returns:
            ContainerHandle with runtime id and host port
        """
        name = self.container_name(session_id)
        port = await self._allocator.allocate()

        logger.info(f"Creating container: {name} on port {port}")
        try:
            container_id = await self._client.create_container(name, port, image)
        except Exception:
            self._allocator.release(port)
            raise

        logger.info(f"Starting container: {container_id}")
        await self._client.start_container(container_id)

        return ContainerHandle(id=container_id, port=port)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def inspect_container(self, container_id: str) -> ContainerInspection:
        return await self._client.inspect_container(container_id)

    @staticmethod
    def resolve_port(info: ContainerInspection) -> int:
        """Host port of a container, preferring the live binding over the label."""
        if info.bound_port is not None:
            return info.bound_port
        if info.label_port is not None:
            return info.label_port
        raise PortUndeterminableError(
            message="Could not determine container port",
            operation="resolve_port",
            details={"container_id": info.id},
        )

    async def _claim_port(self, port: int) -> bool:
        """
        Reserve a container's own recorded port if no process listens on it.

        The local reservation is not consulted: a container that exited on its
        own still holds its port from create, and allocate never hands out a
        port recorded in another container's label.
        """
        if not await self._allocator.is_port_available(port):
            return False
        self._allocator.reserve(port)
        return True

    # ------------------------------------------------------------------
    # Start / stop / delete
    # ------------------------------------------------------------------

    @container_operation("start_container", "Failed to start container")
    async def start_container(self, container_id: str) -> StartResult:
        """
        Start an existing container on its recorded port.

        A running container is only inspected. A stopped one gets its
        labeled port back when free; if that port is gone the call fails with
        PortConflictError and the container is left untouched.

        Args:
            container_id: Runtime id or name

        Returns:
            StartResult with the host port
        """
        info = await self._client.inspect_container(container_id)

        if info.running:
            return StartResult(port=self.resolve_port(info))

        recorded = info.label_port if info.label_port is not None else info.bound_port

        if recorded is not None and await self._claim_port(recorded):
            port = recorded
        else:
            port = await self._allocator.allocate()
            if recorded is not None and recorded != port:
                self._allocator.release(port)
                raise PortConflictError(
                    message=f"Container port {recorded} is no longer available. Please recreate the container.",
                    operation="start_container",
                    details={"container_id": container_id, "recorded_port": recorded, "allocated_port": port},
                )

        await self._client.start_container(container_id)
        logger.info(f"Started container: {container_id} on port {port}")
        return StartResult(port=port)

    @container_operation("stop_container", "Failed to stop container")
    async def stop_container(self, container_id: str) -> None:
        """Stop a container and drop its port reservation."""
        info = await self._client.inspect_container(container_id)
        port = self.resolve_port(info)

        await self._client.stop_container(container_id)
        self._allocator.release(port)
        logger.info(f"Stopped container: {container_id}, released port: {port}")

    @container_operation("delete_container", "Failed to delete container")
    async def delete_container(self, container_id: str) -> OperationResult[None]:
        """
        Remove a container and, best effort, its session image.

        Args:
            container_id: Runtime id or name

        Returns:
            OperationResult whose diagnostics list skipped cleanups
        """
        result: OperationResult[None] = OperationResult()
        info = await self._client.inspect_container(container_id)

        try:
            port: Optional[int] = self.resolve_port(info)
        except PortUndeterminableError as e:
            port = None
            result.add_diagnostic("delete_container", f"{e.message} for {container_id}; no port to release")

        if info.running:
            logger.info(f"Stopping container before deletion: {container_id}")
            await self._client.stop_container(container_id)

        await self._client.remove_container(container_id, force=True)
        if port is not None:
            self._allocator.release(port)
        logger.info(f"Deleted container: {container_id}, freed port: {port}")

        if self.owns_image(info.image):
            try:
                await self._client.remove_image(info.image)
                logger.info(f"Deleted associated image: {info.image}")
            except SandboxError as e:
                result.add_diagnostic("delete_container", f"Could not delete image {info.image}: {e}")

        return result

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_project_containers(self) -> List[ContainerSummary]:
        """List project containers; any failure yields an empty list."""
        try:
            return await self._client.list_project_containers()
        except Exception as e:
            logger.warning(f"Could not list project containers: {e}")
            return []

    async def check_runtime_available(self) -> bool:
        """Check if the runtime CLI answers."""
        try:
            version = await self._client.version()
            logger.debug(f"Runtime available: {version}")
            return True
        except SandboxError:
            return False


# Global container manager instance
_container_manager: Optional[ContainerLifecycleManager] = None


def get_container_manager() -> ContainerLifecycleManager:
    """Get global container manager instance."""
    global _container_manager
    if _container_manager is None:
        _container_manager = ContainerLifecycleManager()
    return _container_manager
