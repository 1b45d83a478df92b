import logging
from collections import defaultdict

logger = logging.getLogger(__name__)


class ChannelHub:
    """Per-project subscriber sets for dashboard websockets.

    Publishing is best effort: a socket that fails to send is dropped from every
    channel and the failure never reaches the caller.
    """

    def __init__(self):
        self.channels: dict[int, set] = defaultdict(set)

    def join(self, project_id: int, ws) -> None:
        self.channels[project_id].add(ws)
        logger.info("Client joined project channel %s", project_id)

    def leave(self, project_id: int, ws) -> None:
        subscribers = self.channels.get(project_id)
        if subscribers is None:
            return
        subscribers.discard(ws)
        if not subscribers:
            del self.channels[project_id]

    def disconnect(self, ws) -> None:
        for project_id in list(self.channels):
            self.leave(project_id, ws)

    def subscribers(self, project_id: int) -> set:
        return set(self.channels.get(project_id, ()))

    async def publish(self, project_id: int, message: dict) -> int:
        dead = []
        delivered = 0
        for ws in self.subscribers(project_id):
            try:
                await ws.send_json(message)
                delivered += 1
            except Exception as exc:
                logger.warning("Dropping subscriber on project %s: %s", project_id, exc)
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)
        return delivered


hub = ChannelHub()
