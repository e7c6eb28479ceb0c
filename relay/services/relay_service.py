from collections import OrderedDict
from typing import Optional

from relay.logging_config import LoggerAdapter, get_logger
from relay.services.actions import InboundMessage
from relay.services.conversation_router import ConversationRouter
from relay.services.whatsapp_service import WhatsAppMessenger

logger = get_logger("relay_service")


class InboundDeduplicator:
    """Remembers the most recent inbound message ids to drop redelivered webhooks."""

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max_entries
        self._seen: OrderedDict[str, None] = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def seen(self, key: str) -> bool:
        """Record ``key``; return True if it was already recorded."""
        if key in self._seen:
            self._seen.move_to_end(key)
            return True
        self._seen[key] = None
        while len(self._seen) > self.max_entries:
            self._seen.popitem(last=False)
        return False


class RelayService:
    """Inbound message -> router -> outbound messenger. Never raises."""

    def __init__(
        self,
        router: ConversationRouter,
        messenger: WhatsAppMessenger,
        deduplicator: Optional[InboundDeduplicator] = None,
    ):
        self.router = router
        self.messenger = messenger
        self.deduplicator = deduplicator or InboundDeduplicator()

    async def handle(self, message: InboundMessage) -> int:
        """Process one inbound message. Returns the number of actions delivered."""
        log = LoggerAdapter(logger, {"sender": message.sender, "message_id": message.message_id})

        # Only platform ids are trusted; identical texts from one sender are legitimate.
        if message.message_id and self.deduplicator.seen(message.message_id.strip()):
            log.info("Duplicate delivery ignored")
            return 0

        try:
            actions = await self.router.handle(message)
        except Exception as e:
            log.error(f"Routing failed: {e}", exc_info=True)
            return 0

        delivered = 0
        for action in actions:
            try:
                result = await self.messenger.send(action)
            except Exception as e:
                log.error(f"Outbound send crashed: {e}", exc_info=True)
                continue
            if result.ok:
                delivered += 1
            else:
                log.warning("Outbound action not delivered", context={"error_code": result.error_code})
        return delivered
