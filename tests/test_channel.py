"""Tests for the message channel."""

import asyncio
import logging

from channel import MessageChannel


class TestInbound:
    """Tests for subscribe()/emit()."""

    def setup_method(self):
        self.channel = MessageChannel()
        self.calls = []

    def handler(self, payload):
        self.calls.append(payload)

    def test_subscribe_is_idempotent(self):
        self.channel.subscribe("startGui", self.handler)
        self.channel.subscribe("startGui", self.handler)
        assert self.channel.handler_count("startGui") == 1
        self.channel.emit("startGui", "model")
        assert self.calls == ["model"]

    def test_unsubscribe(self):
        subscription = self.channel.subscribe("export_", self.handler)
        assert subscription.active
        subscription.unsubscribe()
        assert not subscription.active
        self.channel.emit("export_", {})
        assert self.calls == []

    def test_handlers_run_in_registration_order(self):
        self.channel.subscribe("p", lambda _: self.calls.append("first"))
        self.channel.subscribe("p", lambda _: self.calls.append("second"))
        self.channel.emit("p")
        assert self.calls == ["first", "second"]

    def test_emit_without_handlers(self):
        self.channel.emit("nobody")

    def test_async_handlers_are_scheduled(self):
        async def slow(payload):
            await asyncio.sleep(0)
            self.calls.append(payload)

        async def run():
            self.channel.subscribe("rebuild", slow)
            self.channel.emit("rebuild", 1)
            self.channel.emit("rebuild", 2)
            assert self.calls == []
            await self.channel.drain()

        asyncio.run(run())
        assert self.calls == [1, 2]

    def test_failing_async_handler_is_logged(self, caplog):
        async def broken(_payload):
            raise RuntimeError("boom")

        async def run():
            self.channel.subscribe("p", broken)
            self.channel.emit("p")
            await self.channel.drain()

        with caplog.at_level(logging.ERROR, logger="channel"):
            asyncio.run(run())
        assert "Inbound handler failed" in caplog.text


class TestOutbound:
    """Tests for listen()/send()."""

    def test_send_reaches_listeners(self):
        channel = MessageChannel()
        received = []
        subscription = channel.listen("exportCode", received.append)
        channel.listen("exportCode", received.append)
        channel.send("exportCode", "{}")
        subscription.unsubscribe()
        channel.send("exportCode", "[]")
        assert received == ["{}"]
