"""Tests for remote filesystem access inside containers."""

import asyncio
import os
import shlex
import stat

import pytest

from workbench.core.runtime import RemoteFileSystemBridge, RuntimeCommandError
from workbench.core.runtime.filesystem import build_traversal_command, parse_directory_listing

from conftest import command_failure, inner_command

FIND = r"find "
STAT = r"stat -c %F"
HEAD_C = r"head -c "
CP = r"^podman cp "


def stat_responder(directories):
    """Answer ``stat -c %F`` for the given directory set."""
    def responder(command):
        path = shlex.split(inner_command(command))[-1]
        return "directory\n" if path in directories else "regular file\n"
    return responder


def read_path(command):
    return shlex.split(inner_command(command))[-1]


class TestTraversalCommand:
    """Tests for the find pipeline."""

    def test_structure_traversal_prunes_dependencies(self):
        """Test node_modules and .next are pruned, UI components are not."""
        command = build_traversal_command("/app/my-nextjs-app")

        assert command.startswith("find /app/my-nextjs-app ")
        assert "-name node_modules -o -name .next" in command
        assert "components/ui" not in command
        assert command.endswith("| sort")

    def test_content_traversal_excludes_boilerplate(self):
        """Test content traversals skip UI components and generated files."""
        command = build_traversal_command("/app/my-nextjs-app", include_content=True)

        assert "-path '*/components/ui'" in command
        for name in ("package-lock\\.json", "next-env\\.d\\.ts", "favicon\\.ico", "components/ui"):
            assert name in command


class TestFileTree:
    """Tests for tree building."""

    @pytest.mark.asyncio
    async def test_tree_from_flat_listing(self, bridge, fake_executor):
        """Test nodes nest under their parent directories."""
        fake_executor.on(FIND, "/root\n/root/c\n/root/a/b.txt\n/root/a\n")
        fake_executor.on(STAT, stat_responder({"/root/a"}))

        tree = await bridge.get_file_tree("abc", "/root")

        assert [node.to_dict() for node in tree] == [
            {
                "name": "a",
                "path": "/root/a",
                "type": "directory",
                "children": [{"name": "b.txt", "path": "/root/a/b.txt", "type": "file"}],
            },
            {"name": "c", "path": "/root/c", "type": "file"},
        ]
        assert fake_executor.matching(HEAD_C) == []

    @pytest.mark.asyncio
    async def test_tree_defaults_to_base_path(self, bridge, fake_executor):
        """Test the app directory is walked when no root is given."""
        fake_executor.on(FIND, "/app/my-nextjs-app\n/app/my-nextjs-app/package.json\n")

        tree = await bridge.get_file_tree("abc")

        assert [node.path for node in tree] == ["/app/my-nextjs-app/package.json"]
        assert "find /app/my-nextjs-app " in inner_command(fake_executor.matching(FIND)[0])

    @pytest.mark.asyncio
    async def test_orphaned_paths_are_skipped(self, bridge, fake_executor):
        """Test a path whose parent was not listed is left out."""
        fake_executor.on(FIND, "/root/x/y.txt\n/root/z\n")

        tree = await bridge.get_file_tree("abc", "/root/")

        assert [node.path for node in tree] == ["/root/z"]

    @pytest.mark.asyncio
    async def test_relative_root_resolves_against_base_path(self, bridge, fake_executor):
        """Test a relative tree root is walked under the app directory."""
        fake_executor.on(FIND, "/app/my-nextjs-app/app\n/app/my-nextjs-app/app/page.tsx\n")

        tree = await bridge.get_file_tree("abc", "app")

        assert [node.path for node in tree] == ["/app/my-nextjs-app/app/page.tsx"]
        assert inner_command(fake_executor.matching(FIND)[0]).startswith("find /app/my-nextjs-app/app ")

    @pytest.mark.asyncio
    async def test_stat_failure_means_file(self, bridge, fake_executor):
        """Test a path that cannot be stat'ed is treated as a file."""
        fake_executor.on(FIND, "/root/gone\n")
        fake_executor.on(STAT, command_failure(stderr="No such file"))

        tree = await bridge.get_file_tree("abc", "/root")

        assert tree[0].type == "file"
        assert tree[0].children is None

    @pytest.mark.asyncio
    async def test_content_tree_reads_files(self, bridge, fake_executor):
        """Test contents are attached to file nodes only."""
        fake_executor.on(FIND, "/root/a\n/root/a/b.txt\n/root/c\n")
        fake_executor.on(STAT, stat_responder({"/root/a"}))
        fake_executor.on(HEAD_C, lambda command: f"content of {read_path(command)}")

        tree = await bridge.get_file_content_tree("abc", "/root")

        assert tree[0].content is None
        assert tree[0].children[0].content == "content of /root/a/b.txt"
        assert tree[1].content == "content of /root/c"

    @pytest.mark.asyncio
    async def test_content_tree_read_failure_is_placeholder(self, bridge, fake_executor):
        """Test one unreadable file does not spoil its siblings."""
        fake_executor.on(FIND, "/root/bad.bin\n/root/good.txt\n")

        def read(command):
            path = read_path(command)
            if path == "/root/bad.bin":
                return command_failure(command, stderr="Permission denied")
            return "fine"

        fake_executor.on(HEAD_C, read)

        tree = await bridge.get_file_content_tree("abc", "/root")

        contents = {node.name: node.content for node in tree}
        assert contents["good.txt"] == "fine"
        assert contents["bad.bin"].startswith("Error reading file: ")
        assert "Permission denied" in contents["bad.bin"]


class TestReads:
    """Tests for file reads."""

    @pytest.mark.asyncio
    async def test_read_strips_bom_and_caps_size(self, bridge, fake_executor):
        """Test a leading BOM is dropped and the read ceiling applied."""
        fake_executor.on(HEAD_C, "\ufeffexport default 1;\n")

        content = await bridge.read_file("abc", "app/page.tsx")

        assert content == "export default 1;\n"
        assert inner_command(fake_executor.calls[0]) == "head -c 10000000 /app/my-nextjs-app/app/page.tsx"

    @pytest.mark.asyncio
    async def test_read_missing_file_raises(self, bridge, fake_executor):
        """Test a missing file fails the read."""
        fake_executor.on(HEAD_C, command_failure(stderr="No such file or directory"))

        with pytest.raises(RuntimeCommandError):
            await bridge.read_file("abc", "/nope")

    @pytest.mark.asyncio
    async def test_batches_bound_concurrency(self, runtime_client, fake_executor):
        """Test no more reads than the batch size run at once."""
        bridge = RemoteFileSystemBridge(client=runtime_client, read_batch_size=2)
        active = 0
        peak = 0

        async def read(command):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return read_path(command)

        fake_executor.on(HEAD_C, read)
        paths = [f"/root/f{i}" for i in range(5)]

        contents = await bridge.read_files_batch("abc", paths)

        assert contents == {path: path for path in paths}
        assert peak == 2

    @pytest.mark.asyncio
    async def test_list_directory(self, bridge, fake_executor):
        """Test ls -la output is parsed into entries."""
        fake_executor.on(r"ls -la ", (
            "total 16\n"
            "drwxr-xr-x    5 node node  4096 Jan  1 12:00 .\n"
            "drwxr-xr-x    3 node node  4096 Jan  1 12:00 ..\n"
            "drwxr-xr-x    2 node node  4096 Jan  1 12:00 app\n"
            "-rw-r--r--    1 node node   812 Jan  1 12:00 my notes.md\n"
        ))

        entries = await bridge.list_directory("abc")

        assert [(e.name, e.type) for e in entries] == [("app", "directory"), ("my notes.md", "file")]
        assert entries[1].size == "812"
        assert entries[1].modified == "Jan 1 12:00"
        assert entries[1].permissions == "-rw-r--r--"


class TestParseDirectoryListing:
    """Tests for parse_directory_listing."""

    def test_short_lines_are_skipped(self):
        """Test malformed rows are ignored."""
        assert parse_directory_listing("total 0\nbroken line\n") == []


class TestWrites:
    """Tests for file writes."""

    @pytest.mark.asyncio
    async def test_write_copies_and_cleans_up(self, bridge, fake_executor, write_temp_dir):
        """Test content is copied in, verified and the temp file removed."""
        written = {}

        def copy(command):
            args = shlex.split(command)
            with open(args[2], encoding="utf-8", newline="") as f:
                written[args[3]] = f.read()
            return ""

        fake_executor.on(CP, copy)

        result = await bridge.write_file("abc", "app/page.tsx", "héllo\r\nworld")

        assert result.clean
        assert written == {"abc:/app/my-nextjs-app/app/page.tsx": "héllo\r\nworld"}
        assert inner_command(fake_executor.calls[-1]) == "head -n 5 /app/my-nextjs-app/app/page.tsx"
        assert os.listdir(write_temp_dir) == []

    @pytest.mark.asyncio
    async def test_written_file_is_world_readable(self, bridge, fake_executor):
        """Test the copied file carries mode 0644 so non-root processes can read it."""
        modes = []

        def copy(command):
            modes.append(stat.S_IMODE(os.stat(shlex.split(command)[2]).st_mode))
            return ""

        fake_executor.on(CP, copy)

        await bridge.write_file("abc", "app/page.tsx", "x")

        assert modes == [0o644]

    @pytest.mark.asyncio
    async def test_write_creates_missing_directory(self, bridge, fake_executor, write_temp_dir):
        """Test a failed copy creates the parent directory and retries once."""
        attempts = []

        def copy(command):
            attempts.append(command)
            if len(attempts) == 1:
                return command_failure(command, stderr="no such file or directory")
            return ""

        fake_executor.on(CP, copy)

        result = await bridge.write_file("abc", "/app/new/dir/file.ts", "x")

        assert result.clean
        assert len(attempts) == 2
        assert fake_executor.calls[1].startswith("podman exec abc sh -c")
        assert inner_command(fake_executor.calls[1]) == "mkdir -p /app/new/dir"
        assert os.listdir(write_temp_dir) == []

    @pytest.mark.asyncio
    async def test_write_failure_still_cleans_up(self, bridge, fake_executor, write_temp_dir):
        """Test the temp file is removed when both copies fail."""
        fake_executor.on(CP, command_failure(stderr="container not running"))

        with pytest.raises(RuntimeCommandError):
            await bridge.write_file("abc", "a.txt", "x")

        assert len(fake_executor.matching(CP)) == 2
        assert os.listdir(write_temp_dir) == []

    @pytest.mark.asyncio
    async def test_verification_failure_is_diagnostic(self, bridge, fake_executor, write_temp_dir):
        """Test a failed read-back does not fail the write."""
        fake_executor.on(r"head -n 5", command_failure(stderr="Permission denied"))

        result = await bridge.write_file("abc", "a.txt", "x")

        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].operation == "write_file"
        assert os.listdir(write_temp_dir) == []


class TestRenameAndRemove:
    """Tests for rename and remove."""

    @pytest.mark.asyncio
    async def test_rename_creates_target_directory(self, bridge, fake_executor):
        """Test rename makes the target parent and moves the file."""
        await bridge.rename_file("abc", "app/old.tsx", "app/new dir/new.tsx")

        assert [inner_command(c) for c in fake_executor.calls] == [
            "mkdir -p '/app/my-nextjs-app/app/new dir'",
            "mv /app/my-nextjs-app/app/old.tsx '/app/my-nextjs-app/app/new dir/new.tsx'",
        ]

    @pytest.mark.asyncio
    async def test_remove_is_recursive(self, bridge, fake_executor):
        """Test remove deletes files and directories alike."""
        await bridge.remove_file("abc", "/app/my-nextjs-app/app/legacy")

        assert [inner_command(c) for c in fake_executor.calls] == ["rm -rf /app/my-nextjs-app/app/legacy"]
