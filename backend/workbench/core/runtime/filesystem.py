# -*- coding: utf-8 -*-
"""
Remote filesystem access inside sandbox containers.

Containers are only reachable through the runtime CLI, so trees are rebuilt
from flat ``find`` output and writes go through a local temp file that is
copied in with ``cp``.
"""

import asyncio
import logging
import os
import posixpath
import shlex
import tempfile
from typing import Dict, List, Optional

from workbench.config.settings import FileSystemConfig, get_settings
from workbench.core.runtime.base import RuntimeCommandError, SandboxError
from workbench.core.runtime.client import ContainerRuntimeClient
from workbench.core.runtime.constants import (
    BYTE_ORDER_MARK,
    CONTENT_EXCLUDED_FILES,
    CONTENT_PRUNED_PATHS,
    PRUNED_DIRECTORIES,
    READ_ERROR_PREFIX,
    VERIFY_LINE_COUNT,
    WRITTEN_FILE_MODE,
)
from workbench.core.runtime.models import DirectoryEntry, FileNode, OperationResult

logger = logging.getLogger(__name__)


def build_traversal_command(root_path: str, include_content: bool = False) -> str:
    """
    Build the ``find`` pipeline listing every file and directory under root.

    Dependency and build output directories are pruned. Content traversals
    also skip UI component sources and generated boilerplate files.
    """
    prune_tests = [f"-name {shlex.quote(name)}" for name in PRUNED_DIRECTORIES]
    excluded = list(PRUNED_DIRECTORIES)
    if include_content:
        prune_tests += [f"-path {shlex.quote(pattern)}" for pattern in CONTENT_PRUNED_PATHS]
        excluded += [pattern.lstrip("*/") for pattern in CONTENT_PRUNED_PATHS]
        excluded += list(CONTENT_EXCLUDED_FILES)

    pattern = "(^|/)(" + "|".join(name.replace(".", "\\.") for name in excluded) + ")(/|$)"
    return (
        f"find {shlex.quote(root_path)} \\( {' -o '.join(prune_tests)} \\) -prune "
        f"-o \\( -type f -o -type d \\) -print"
        f" | grep -v -E {shlex.quote(pattern)} | sort"
    )


def parse_directory_listing(output: str) -> List[DirectoryEntry]:
    """Parse ``ls -la`` output, dropping the total line and . / .. entries."""
    entries = []
    for line in output.strip().splitlines()[1:]:
        parts = line.split()
        if len(parts) < 9:
            continue
        name = " ".join(parts[8:])
        if name in (".", ".."):
            continue
        entries.append(DirectoryEntry(
            name=name,
            type="directory" if parts[0].startswith("d") else "file",
            permissions=parts[0],
            size=parts[4],
            modified=f"{parts[5]} {parts[6]} {parts[7]}",
        ))
    return entries


class RemoteFileSystemBridge:
    """File tree, read and write operations on a container's filesystem."""

    def __init__(
        self,
        client: Optional[ContainerRuntimeClient] = None,
        base_path: Optional[str] = None,
        max_read_bytes: Optional[int] = None,
        read_batch_size: Optional[int] = None,
        temp_dir: Optional[str] = FileSystemConfig.TEMP_DIR,
    ):
        settings = get_settings()
        self._client = client or ContainerRuntimeClient()
        self._base_path = base_path or settings.fs_base_path
        self._max_read_bytes = max_read_bytes or settings.fs_max_read_bytes
        self._read_batch_size = read_batch_size or settings.fs_read_batch_size
        self._temp_dir = temp_dir

    @property
    def base_path(self) -> str:
        return self._base_path

    def resolve_path(self, path: str) -> str:
        """Resolve a relative path against the app base directory."""
        return path if path.startswith("/") else posixpath.join(self._base_path, path)

    # ------------------------------------------------------------------
    # Trees
    # ------------------------------------------------------------------

    async def _is_directory(self, container_id: str, path: str) -> bool:
        try:
            output = await self._client.exec(container_id, f"stat -c %F {shlex.quote(path)}")
        except SandboxError:
            return False
        return "directory" in output.strip()

    async def list_tree(
        self,
        container_id: str,
        root_path: Optional[str] = None,
        include_content: bool = False,
    ) -> List[FileNode]:
        """
        Build the file tree under root_path.

        Args:
            container_id: Container id or name
            root_path: Directory to walk (defaults to the app base directory)
            include_content: Also read every file's content

        Returns:
            Top-level nodes under root_path, in lexicographic order
        """
        root = self.resolve_path(root_path or self._base_path).rstrip("/") or "/"
        output = await self._client.exec(container_id, build_traversal_command(root, include_content))

        # Sorted again here: the container's sort may follow a locale
        paths = sorted({p for p in output.splitlines() if p.strip() and p != root})

        root_node = FileNode(name="root", path=root, type="directory", children=[])
        nodes: Dict[str, FileNode] = {root: root_node}
        files_to_read: List[str] = []

        for path in paths:
            is_directory = await self._is_directory(container_id, path)
            node = FileNode(
                name=path.rsplit("/", 1)[-1],
                path=path,
                type="directory" if is_directory else "file",
                children=[] if is_directory else None,
            )
            nodes[path] = node
            if not is_directory:
                files_to_read.append(path)

            parent = nodes.get(path.rsplit("/", 1)[0] or root)
            if parent is not None and parent.children is not None:
                parent.children.append(node)
            else:
                logger.debug(f"Skipping {path}: parent not in tree")

        if include_content:
            contents = await self.read_files_batch(container_id, files_to_read)
            for path, content in contents.items():
                nodes[path].content = content

        return root_node.children

    async def get_file_tree(self, container_id: str, path: Optional[str] = None) -> List[FileNode]:
        return await self.list_tree(container_id, path, include_content=False)

    async def get_file_content_tree(self, container_id: str, path: Optional[str] = None) -> List[FileNode]:
        return await self.list_tree(container_id, path, include_content=True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _read_or_placeholder(self, container_id: str, path: str) -> str:
        try:
            return await self.read_file(container_id, path)
        except Exception as e:
            logger.warning(f"Failed to read {path}: {e}")
            return f"{READ_ERROR_PREFIX}: {e}"

    async def read_files_batch(self, container_id: str, paths: List[str]) -> Dict[str, str]:
        """
        Read many files, a batch at a time.

        Reads inside a batch run concurrently; batches run one after another.
        A failed read yields an error placeholder instead of raising.
        """
        results: Dict[str, str] = {}
        for i in range(0, len(paths), self._read_batch_size):
            batch = paths[i:i + self._read_batch_size]
            contents = await asyncio.gather(
                *(self._read_or_placeholder(container_id, path) for path in batch)
            )
            results.update(zip(batch, contents))
        return results

    async def read_file(self, container_id: str, path: str) -> str:
        """Read a file, truncated to the read ceiling, without a leading BOM."""
        absolute_path = self.resolve_path(path)
        output = await self._client.exec(
            container_id, f"head -c {self._max_read_bytes} {shlex.quote(absolute_path)}"
        )
        if output.startswith(BYTE_ORDER_MARK):
            output = output[len(BYTE_ORDER_MARK):]
        return output

    async def list_directory(self, container_id: str, path: Optional[str] = None) -> List[DirectoryEntry]:
        """List one directory level with permissions, size and mtime."""
        absolute_path = self.resolve_path(path or self._base_path)
        output = await self._client.exec(container_id, f"ls -la {shlex.quote(absolute_path)}")
        return parse_directory_listing(output)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write_file(self, container_id: str, path: str, content: str) -> OperationResult[None]:
        """
        Write content to a file inside the container.

        The content goes to a local temp file that is copied in. When the
        copy fails the target directory is created and the copy retried once.
        The temp file is removed whatever happens.

        Args:
            container_id: Container id or name
            path: Target path, relative to the base directory unless absolute
            content: Text to write

        Returns:
            OperationResult whose diagnostics hold verification and cleanup problems

        Raises:
            RuntimeCommandError: If the copy fails after the retry
        """
        result: OperationResult[None] = OperationResult()
        absolute_path = self.resolve_path(path)
        logger.info(f"Writing file: {absolute_path} ({len(content)} characters)")

        fd, temp_path = tempfile.mkstemp(prefix="file-", dir=self._temp_dir)
        try:
            with open(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            # cp keeps the source mode; mkstemp creates 0600
            os.chmod(temp_path, WRITTEN_FILE_MODE)
            logger.debug(f"Temporary file created: {temp_path}")

            try:
                await self._client.copy_into_container(temp_path, container_id, absolute_path)
                logger.info("File copied successfully")
            except RuntimeCommandError as e:
                logger.info(f"Copy failed, trying to create directory first: {e}")
                await self._client.exec(container_id, f"mkdir -p {shlex.quote(posixpath.dirname(absolute_path))}")
                await self._client.copy_into_container(temp_path, container_id, absolute_path)
                logger.info("File copied successfully on retry")

            try:
                head = await self._client.exec(
                    container_id, f"head -n {VERIFY_LINE_COUNT} {shlex.quote(absolute_path)}"
                )
                logger.debug(f"File verification (first {VERIFY_LINE_COUNT} lines):\n{head}")
            except SandboxError as e:
                result.add_diagnostic("write_file", f"Could not verify file content: {e}")
        finally:
            try:
                os.unlink(temp_path)
            except OSError as e:
                result.add_diagnostic("write_file", f"Failed to clean up temp file {temp_path}: {e}")

        return result

    async def rename_file(self, container_id: str, old_path: str, new_path: str) -> None:
        absolute_old = self.resolve_path(old_path)
        absolute_new = self.resolve_path(new_path)
        await self._client.exec(container_id, f"mkdir -p {shlex.quote(posixpath.dirname(absolute_new))}")
        await self._client.exec(container_id, f"mv {shlex.quote(absolute_old)} {shlex.quote(absolute_new)}")

    async def remove_file(self, container_id: str, path: str) -> None:
        await self._client.exec(container_id, f"rm -rf {shlex.quote(self.resolve_path(path))}")
