"""
Unit tests for NeoRpcClient.

Runs a throwaway JSON-RPC node on aiohttp's test server and checks request
framing, result parsing and error classification.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp import test_utils

from tracker.neo.mock_data import MockNeoRpcClient
from tracker.neo.rpc_client import (
    MalformedResponse,
    NeoRpcClient,
    RemoteUnavailable,
    RpcClientConfig,
)


@asynccontextmanager
async def running_node(handler):
    """Serve `handler(body) -> web.Response` on a local port."""
    requests = []

    async def handle(request):
        body = await request.json()
        requests.append(body)
        result = handler(body)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    app = web.Application()
    app.router.add_post("/", handle)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url("/")), requests
    finally:
        await server.close()


def rpc_result(result):
    return lambda body: web.json_response({"jsonrpc": "2.0", "id": body["id"], "result": result})


@asynccontextmanager
async def connected_client(url, timeout=5.0):
    async with NeoRpcClient(RpcClientConfig(rpc_url=url, request_timeout=timeout)) as client:
        yield client


class TestRequests:
    """Test successful calls."""

    @pytest.mark.asyncio
    async def test_fetch_height(self):
        async with running_node(rpc_result(1234)) as (url, requests):
            async with connected_client(url) as client:
                height = await client.fetch_height()

        assert height == 1234
        assert requests[0]["jsonrpc"] == "2.0"
        assert requests[0]["method"] == "getblockcount"
        assert requests[0]["params"] == []

    @pytest.mark.asyncio
    async def test_fetch_block(self):
        payload = MockNeoRpcClient().generate_block(5)

        async with running_node(rpc_result(payload)) as (url, requests):
            async with connected_client(url) as client:
                block = await client.fetch_block(5)

        assert requests[0]["method"] == "getblock"
        assert requests[0]["params"] == [5, True]
        assert block.index == 5
        assert block.hash == payload["hash"]
        assert block.timestamp == payload["time"]
        assert block.tx_count == len(payload["tx"])

    @pytest.mark.asyncio
    async def test_request_ids_increase(self):
        async with running_node(rpc_result(1)) as (url, requests):
            async with connected_client(url) as client:
                await client.fetch_height()
                await client.fetch_height()

        assert requests[1]["id"] > requests[0]["id"]


class TestErrors:
    """Test error classification."""

    @pytest.mark.asyncio
    async def test_http_error_is_unavailable(self):
        handler = lambda body: web.Response(status=503, text="busy")

        async with running_node(handler) as (url, _):
            async with connected_client(url) as client:
                with pytest.raises(RemoteUnavailable) as exc_info:
                    await client.fetch_height()

        assert not isinstance(exc_info.value, MalformedResponse)

    @pytest.mark.asyncio
    async def test_rpc_error_is_unavailable(self):
        handler = lambda body: web.json_response({
            "jsonrpc": "2.0",
            "id": body["id"],
            "error": {"code": -100, "message": "Unknown block"},
        })

        async with running_node(handler) as (url, _):
            async with connected_client(url) as client:
                with pytest.raises(RemoteUnavailable, match="Unknown block"):
                    await client.fetch_block(999)

    @pytest.mark.asyncio
    async def test_invalid_json_is_malformed(self):
        handler = lambda body: web.Response(text="not json", content_type="application/json")

        async with running_node(handler) as (url, _):
            async with connected_client(url) as client:
                with pytest.raises(MalformedResponse):
                    await client.fetch_height()

    @pytest.mark.asyncio
    async def test_missing_result_is_malformed(self):
        handler = lambda body: web.json_response({"jsonrpc": "2.0", "id": body["id"]})

        async with running_node(handler) as (url, _):
            async with connected_client(url) as client:
                with pytest.raises(MalformedResponse):
                    await client.fetch_height()

    @pytest.mark.asyncio
    async def test_non_integer_height_is_malformed(self):
        async with running_node(rpc_result("12")) as (url, _):
            async with connected_client(url) as client:
                with pytest.raises(MalformedResponse):
                    await client.fetch_height()

    @pytest.mark.asyncio
    async def test_incomplete_block_is_malformed(self):
        async with running_node(rpc_result({"index": 3, "time": 1})) as (url, _):
            async with connected_client(url) as client:
                with pytest.raises(MalformedResponse):
                    await client.fetch_block(3)

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        async def slow(body):
            await asyncio.sleep(1.0)
            return web.json_response({"jsonrpc": "2.0", "id": body["id"], "result": 1})

        async with running_node(slow) as (url, _):
            async with connected_client(url, timeout=0.1) as client:
                with pytest.raises(RemoteUnavailable):
                    await client.fetch_height()

    @pytest.mark.asyncio
    async def test_connection_refused_is_unavailable(self):
        async with running_node(rpc_result(1)) as (url, _):
            pass  # server is closed on exit

        async with connected_client(url) as client:
            with pytest.raises(RemoteUnavailable):
                await client.fetch_height()

    @pytest.mark.asyncio
    async def test_not_started(self):
        client = NeoRpcClient()

        with pytest.raises(RemoteUnavailable):
            await client.fetch_height()


class TestMalformedIsUnavailable:

    def test_subclass(self):
        assert issubclass(MalformedResponse, RemoteUnavailable)
