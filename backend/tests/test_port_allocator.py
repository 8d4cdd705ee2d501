"""Tests for host port allocation."""

import asyncio

import pytest

from workbench.core.runtime import PortAllocator, PortExhaustedError

from conftest import command_failure, lsof_listening_on

LABELS = r"Labels\.assignedPort"
LSOF = r"^lsof -i :"


class TestPortAllocator:
    """Tests for PortAllocator."""

    @pytest.mark.asyncio
    async def test_allocates_base_port_when_free(self, allocator):
        """Test the first free port is the base port."""
        port = await allocator.allocate()

        assert port == 8000
        assert allocator.is_reserved(8000)

    @pytest.mark.asyncio
    async def test_skips_ports_recorded_in_labels(self, allocator, fake_executor):
        """Test ports held by project containers are never handed out."""
        fake_executor.on(LABELS, "8000\n8001\n")

        assert await allocator.allocate() == 8002

    @pytest.mark.asyncio
    async def test_skips_ports_with_os_listener(self, allocator, fake_executor):
        """Test a port some other process listens on is skipped."""
        fake_executor.on(LSOF, lsof_listening_on(8000, 8001))

        assert await allocator.allocate() == 8002
        assert fake_executor.matching(LSOF)[:3] == ["lsof -i :8000", "lsof -i :8001", "lsof -i :8002"]

    @pytest.mark.asyncio
    async def test_probe_failure_counts_as_available(self, allocator, fake_executor):
        """Test a failing lsof does not block allocation."""
        fake_executor.on(LSOF, command_failure(exit_code=127, stderr="lsof: not found"))

        assert await allocator.is_port_available(8000) is True
        assert await allocator.allocate() == 8000

    @pytest.mark.asyncio
    async def test_runtime_listing_failure_degrades(self, allocator, fake_executor):
        """Test allocation proceeds when the runtime cannot list labels."""
        fake_executor.on(LABELS, command_failure(stderr="cannot connect"))

        assert await allocator.allocate() == 8000

    @pytest.mark.asyncio
    async def test_sequential_allocations_are_distinct(self, allocator):
        """Test reserved ports are skipped on the next call."""
        first = await allocator.allocate()
        second = await allocator.allocate()

        assert (first, second) == (8000, 8001)

    @pytest.mark.asyncio
    async def test_concurrent_allocations_are_distinct(self, allocator):
        """Test overlapping allocate calls never return the same port."""
        ports = await asyncio.gather(*(allocator.allocate() for _ in range(20)))

        assert len(set(ports)) == 20
        assert sorted(ports) == list(range(8000, 8020))
        assert allocator.reserved_ports == frozenset(ports)

    @pytest.mark.asyncio
    async def test_release_makes_port_reusable(self, allocator):
        """Test a released port is the next one handed out."""
        await allocator.allocate()
        await allocator.allocate()

        allocator.release(8000)

        assert await allocator.allocate() == 8000

    def test_release_unreserved_port_is_noop(self, allocator):
        """Test releasing twice does not raise."""
        allocator.reserve(8100)
        allocator.release(8100)
        allocator.release(8100)

        assert not allocator.is_reserved(8100)

    @pytest.mark.asyncio
    async def test_custom_start_port(self, allocator):
        """Test scanning starts at the requested port."""
        assert await allocator.allocate(start_port=9000) == 9000

    @pytest.mark.asyncio
    async def test_exhausted_window_raises(self, runtime_client, fake_executor):
        """Test a window with no free port raises PortExhaustedError."""
        allocator = PortAllocator(runtime_client, base_port=8000, scan_window=3)
        fake_executor.on(LABELS, "8000\n8001\n8002\n")

        with pytest.raises(PortExhaustedError) as exc_info:
            await allocator.allocate()

        assert exc_info.value.message == "No available ports found in range 8000-8002"
        assert exc_info.value.code == 503
        assert allocator.reserved_ports == frozenset()
