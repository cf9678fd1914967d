"""Integration-test fixtures.

A real TCP quote server on an ephemeral port, speaking the same line
protocol as the course server: request `STOCK,user\\n`, reply
`price,STOCK,user,unix_seconds,cryptokey\\n`.
"""

import asyncio
import time
from collections.abc import AsyncIterator

import pytest_asyncio

from tests.fakes import QuoteServer


@pytest_asyncio.fixture
async def quote_server() -> AsyncIterator[QuoteServer]:
    state = QuoteServer(port=0)

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        request = (await reader.readline()).decode().strip()
        state.requests.append(request)
        stock, user_id = request.split(",")
        price = state.prices.get(stock, "1.00")
        reply = f"{price},{stock},{user_id},{int(time.time())},key{len(state.requests)}=\n"
        writer.write(reply.encode())
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    state.port = server.sockets[0].getsockname()[1]
    try:
        yield state
    finally:
        server.close()
        await server.wait_closed()
