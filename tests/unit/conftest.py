"""Unit test fixtures — FastMCP client over an isolated in-process engine."""

from __future__ import annotations

import pytest
from fastmcp import Client

from strata.engine.assembler import create_assembler
from strata.server import build_server


@pytest.fixture()
def assembler(clock):
    """Fresh assembler (in-memory backend) per test."""
    return create_assembler(clock=clock)


@pytest.fixture()
async def mcp_client(assembler):
    """Yield a FastMCP Client wired to a server built around ``assembler``."""
    async with Client(build_server(assembler)) as client:
        yield client
