"""
File service implementation

Business layer for editing files inside sandbox containers
"""

import logging
from dataclasses import asdict
from typing import Optional

from workbench.config.logging_config import log_print
from workbench.core.runtime import (
    RemoteFileSystemBridge,
    SandboxError,
    get_container_manager,
)
from workbench.utils.exceptions import BusinessException
from workbench.utils.model.response_model import BaseResponse, ListResponse

logger = logging.getLogger(__name__)


def require_path(path: str, field: str = "path") -> str:
    if not path or not path.strip():
        raise BusinessException(message=f"'{field}' must not be empty")
    return path


class FileService:
    """
    File service

    Tree listing, reads and writes through RemoteFileSystemBridge
    """

    def __init__(self, bridge: Optional[RemoteFileSystemBridge] = None):
        self._bridge = bridge

    @property
    def bridge(self) -> RemoteFileSystemBridge:
        if self._bridge is None:
            # Share the runtime client of the process-wide container manager
            self._bridge = RemoteFileSystemBridge(client=get_container_manager().client)
        return self._bridge

    async def get_file_tree(self, container_id: str, path: Optional[str] = None):
        """List the file tree (no contents)"""
        try:
            nodes = await self.bridge.get_file_tree(container_id, path)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return ListResponse.success(items=[node.to_dict() for node in nodes])

    async def get_file_content_tree(self, container_id: str, path: Optional[str] = None):
        """List the file tree with file contents"""
        try:
            nodes = await self.bridge.get_file_content_tree(container_id, path)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return ListResponse.success(items=[node.to_dict() for node in nodes])

    async def read_file(self, container_id: str, path: str):
        require_path(path)
        try:
            content = await self.bridge.read_file(container_id, path)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(data={"path": path, "content": content})

    @log_print
    async def list_directory(self, container_id: str, path: Optional[str] = None):
        try:
            entries = await self.bridge.list_directory(container_id, path)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return ListResponse.success(items=[asdict(entry) for entry in entries])

    @log_print
    async def write_file(self, container_id: str, path: str, content: str):
        require_path(path)
        try:
            result = await self.bridge.write_file(container_id, path, content)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(
            data={"path": path, "size": len(content.encode("utf-8"))},
            message="File written",
            diagnostics=result.diagnostics,
        )

    @log_print
    async def rename_file(self, container_id: str, old_path: str, new_path: str):
        require_path(old_path, "old_path")
        require_path(new_path, "new_path")
        try:
            await self.bridge.rename_file(container_id, old_path, new_path)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(data={"old_path": old_path, "new_path": new_path}, message="File renamed")

    @log_print
    async def remove_file(self, container_id: str, path: str):
        require_path(path)
        try:
            await self.bridge.remove_file(container_id, path)
        except SandboxError as e:
            return BaseResponse.from_sandbox_error(e)
        return BaseResponse.success(data={"path": path}, message="File removed")
