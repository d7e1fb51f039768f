"""
Tests for the in-memory queue transport.
"""

import asyncio

import pytest

from checkout.errors import ConfigurationError, TransportError
from messaging.queue import InMemoryQueueTransport, QueueMessage, connect_transport


class TestInMemoryQueueTransport:

    def test_send_then_receive(self, transport: InMemoryQueueTransport):
        async def scenario():
            message_id = await transport.send("orders", '{"id": 1}')
            message = await transport.receive("orders")
            return message_id, message

        message_id, message = asyncio.run(scenario())

        assert message.message_id == message_id
        assert message.body == '{"id": 1}'
        assert message.queue_name == "orders"
        assert message.delivery_count == 1

    def test_sender_chooses_message_id(self, transport: InMemoryQueueTransport):
        message_id = asyncio.run(transport.send("orders", "x", message_id="fixed-id"))

        assert message_id == "fixed-id"
        assert transport.sent_messages[0].message_id == "fixed-id"

    def test_queues_are_independent(self, transport: InMemoryQueueTransport):
        async def scenario():
            await transport.send("a", "for-a")
            await transport.send("b", "for-b")
            return await transport.receive("b")

        message = asyncio.run(scenario())

        assert message.body == "for-b"
        assert transport.pending_count("a") == 1

    def test_message_stays_in_flight_until_completed(self, transport: InMemoryQueueTransport):
        async def scenario():
            await transport.send("orders", "x")
            message = await transport.receive("orders")
            in_flight = transport.in_flight_count()
            await transport.complete(message)
            return in_flight

        assert asyncio.run(scenario()) == 1
        assert transport.in_flight_count() == 0
        assert len(transport.completed_messages) == 1

    def test_dead_letter(self, transport: InMemoryQueueTransport):
        async def scenario():
            await transport.send("orders", "x")
            message = await transport.receive("orders")
            await transport.dead_letter(message, "bad payload")

        asyncio.run(scenario())

        assert len(transport.dead_letters) == 1
        assert transport.dead_letters[0].dead_letter_reason == "bad payload"
        assert transport.pending_count("orders") == 0

    def test_complete_unknown_message_raises(self, transport: InMemoryQueueTransport):
        with pytest.raises(TransportError):
            asyncio.run(transport.complete(QueueMessage(body="x", queue_name="orders")))

    def test_fail_next_sends(self, transport: InMemoryQueueTransport):
        """Injected failures affect exactly the requested number of sends."""
        transport.fail_next_sends(2)

        async def scenario():
            outcomes = []
            for _ in range(3):
                try:
                    await transport.send("orders", "x")
                    outcomes.append("ok")
                except TransportError:
                    outcomes.append("fail")
            return outcomes

        assert asyncio.run(scenario()) == ["fail", "fail", "ok"]
        assert transport.send_calls == 3

    def test_unreachable_transport(self, transport: InMemoryQueueTransport):
        transport.set_reachable(False)

        with pytest.raises(TransportError, match="unreachable"):
            asyncio.run(transport.send("orders", "x"))
        with pytest.raises(TransportError):
            asyncio.run(transport.receive("orders"))

    def test_closed_transport(self, transport: InMemoryQueueTransport):
        asyncio.run(transport.close())

        with pytest.raises(TransportError, match="closed"):
            asyncio.run(transport.send("orders", "x"))


class TestConnectTransport:

    def test_memory_connection_string(self):
        transport = connect_transport("memory://shop")

        assert isinstance(transport, InMemoryQueueTransport)
        assert transport.namespace == "shop"

    def test_same_connection_string_shares_transport(self):
        assert connect_transport("memory://shop") is connect_transport("memory://shop")

    @pytest.mark.parametrize("connection_string", ["", "   ", "amqp://broker", "Endpoint=sb://x/"])
    def test_bad_connection_strings(self, connection_string):
        with pytest.raises(ConfigurationError):
            connect_transport(connection_string)
