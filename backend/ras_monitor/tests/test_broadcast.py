import pytest

from ras_monitor.services.broadcast import ChannelHub


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


@pytest.mark.asyncio
async def test_publish_only_reaches_project_subscribers():
    hub = ChannelHub()
    a, b = FakeSocket(), FakeSocket()
    hub.join(1, a)
    hub.join(2, b)
    delivered = await hub.publish(1, {"type": "new-sensor-data"})
    assert delivered == 1
    assert a.sent == [{"type": "new-sensor-data"}]
    assert b.sent == []


@pytest.mark.asyncio
async def test_failed_socket_is_dropped_everywhere():
    hub = ChannelHub()
    good, bad = FakeSocket(), FakeSocket(fail=True)
    hub.join(1, good)
    hub.join(1, bad)
    hub.join(2, bad)
    assert await hub.publish(1, {"n": 1}) == 1
    assert hub.subscribers(1) == {good}
    assert hub.subscribers(2) == set()


@pytest.mark.asyncio
async def test_publish_without_subscribers():
    assert await ChannelHub().publish(42, {}) == 0


def test_leave_and_disconnect():
    hub = ChannelHub()
    ws = FakeSocket()
    hub.join(1, ws)
    hub.join(2, ws)
    hub.leave(1, ws)
    assert 1 not in hub.channels
    hub.leave(99, ws)
    hub.disconnect(ws)
    assert hub.channels == {}
