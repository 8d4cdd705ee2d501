"""
Container service implementation

Business layer for sandbox container lifecycle endpoints
"""

import logging
import re
from dataclasses import asdict
from typing import Optional

from workbench.config.logging_config import log_print
from workbench.core.runtime import (
    ContainerLifecycleManager,
    SandboxError,
    get_container_manager,
)
from workbench.utils.exceptions import BusinessException
from workbench.utils.model.response_model import BaseResponse, ListResponse

logger = logging.getLogger(__name__)

# Image references must be lowercase; container names share the same id
SESSION_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_.-]{0,127}$")


def validate_session_id(session_id: str) -> str:
    """Reject session ids that cannot be used in image and container names."""
    if not SESSION_ID_PATTERN.match(session_id or ""):
        raise BusinessException(
            message=f"Invalid session id '{session_id}': use lowercase letters, digits, '.', '_' or '-'",
        )
    return session_id


class ContainerService:
    """
    Container service

    Thin business layer over ContainerLifecycleManager
    """

    def __init__(self, manager: Optional[ContainerLifecycleManager] = None):
        self._manager = manager

    @property
    def manager(self) -> ContainerLifecycleManager:
        if self._manager is None:
            self._manager = get_container_manager()
        return self._manager

    @log_print
    async def build_image(self, session_id: str):
        """Build the session image; a failed build removes any partial image"""
        validate_session_id(session_id)
        try:
            result = await self.manager.build_image(session_id)
        except SandboxError as e:
            await self.manager.cleanup_image(session_id)
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.created(
            data={"image": result.value},
            message="Image built",
            diagnostics=result.diagnostics,
        )

    @log_print
    async def create_container(self, image: str, session_id: str):
        """Create and start a container from an image"""
        validate_session_id(session_id)
        try:
            handle = await self.manager.create_container(image, session_id)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.created(data=asdict(handle), message="Container created")

    @log_print
    async def start_container(self, container_id: str):
        try:
            result = await self.manager.start_container(container_id)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(data=asdict(result), message="Container started")

    @log_print
    async def stop_container(self, container_id: str):
        try:
            await self.manager.stop_container(container_id)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(data={"id": container_id}, message="Container stopped")

    @log_print
    async def delete_container(self, container_id: str):
        try:
            result = await self.manager.delete_container(container_id)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(
            data={"id": container_id},
            message="Container deleted",
            diagnostics=result.diagnostics,
        )

    @log_print
    async def inspect_container(self, container_id: str):
        try:
            info = await self.manager.inspect_container(container_id)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(data=asdict(info))

    @log_print
    async def list_containers(self):
        containers = await self.manager.list_project_containers()
        return ListResponse.success(items=[asdict(c) for c in containers])

    async def health(self):
        available = await self.manager.check_runtime_available()
        return BaseResponse.success(
            data={
                "runtime": self.manager.client.binary,
                "runtime_available": available,
                "reserved_ports": sorted(self.manager.allocator.reserved_ports),
            },
            message="healthy" if available else "runtime unavailable",
        )
