"""Menu-driven conversation router.

Maps one inbound message plus the sender's session to the next session state
and an ordered list of outbound actions. The whole cycle (store read, backend
call, store write) runs under the sender's lock. Backend failure alerts are
sent once the lock is released.
"""

from relay.logging_config import get_logger
from relay.services.actions import InboundMessage, OutboundAction, SendMenu, SendText
from relay.services.alert_service import alert_warning
from relay.services.backends.base import BackendAdapter
from relay.services.commands import Command, CommandKind, classify
from relay.services.menu_catalog import MenuCatalog
from relay.services.session_store import Session, SessionStore
from relay.services.state_machine import SessionState, close, show_menu

logger = get_logger("conversation_router")

WELCOME_RESPONSE = "Hello! Welcome. Please choose one of the options below."
FAREWELL_RESPONSE = "Thank you for chatting with us. Goodbye! Type 'hi' anytime to start again."
INVALID_OPTION_RESPONSE = "Invalid option. Type 'menu' to see available options."
DEGRADED_RESPONSE = "Sorry, I am unable to respond at the moment."


class ConversationRouter:
    def __init__(self, store: SessionStore, catalog: MenuCatalog, backend: BackendAdapter):
        self.store = store
        self.catalog = catalog
        self.backend = backend

    async def handle(self, message: InboundMessage) -> list[OutboundAction]:
        """Route one inbound message. Never raises on backend failures."""
        failures: list[Exception] = []
        async with self.store.lock(message.sender):
            session = self.store.get(message.sender)
            command = classify(message.text, self.catalog)
            new_state, actions = await self._dispatch(command, session, message, failures)
            self.store.put(message.sender, session.advance(new_state, now=self.store.now()))

        logger.info(
            "Message routed",
            extra={
                "context": {
                    "sender": message.sender,
                    "command": command.kind.value,
                    "from_state": session.state.value,
                    "to_state": new_state.value,
                    "actions": len(actions),
                }
            },
        )

        # Alerts go out after the lock is released so the sender's next message is not held up.
        for error in failures:
            await self._alert_backend_failure(error)
        return actions

    async def _dispatch(
        self, command: Command, session: Session, message: InboundMessage, failures: list[Exception]
    ) -> tuple[SessionState, list[OutboundAction]]:
        to = message.sender
        state = session.state

        if command.kind == CommandKind.GREETING:
            return show_menu(state), [SendText(to, WELCOME_RESPONSE), self._menu(to)]

        if command.kind == CommandKind.MENU:
            return show_menu(state), [self._menu(to)]

        if command.kind == CommandKind.EXIT:
            return close(state), [SendText(to, FAREWELL_RESPONSE)]

        if command.kind == CommandKind.INVALID_OPTION:
            return state, [SendText(to, INVALID_OPTION_RESPONSE)]

        if command.kind == CommandKind.OPTION:
            reply = await self._ask_backend(command.option.intent_key, to, failures)
            return show_menu(state), [SendText(to, reply)]

        # Free text is answered in every state; Closed is advisory only.
        reply = await self._ask_backend(message.text, to, failures)
        return state, [SendText(to, reply)]

    def _menu(self, to: str) -> SendMenu:
        return SendMenu(to, self.catalog.options)

    async def _ask_backend(self, query: str, sender: str, failures: list[Exception]) -> str:
        try:
            return await self.backend.respond(query, sender)
        except Exception as e:
            logger.error(
                f"Backend failed: {e}",
                exc_info=True,
                extra={"context": {"sender": sender, "backend": self.backend.name}},
            )
            failures.append(e)
            return DEGRADED_RESPONSE

    async def _alert_backend_failure(self, error: Exception) -> None:
        try:
            await alert_warning("Reply backend failed", {"backend": self.backend.name, "error": str(error)})
        except Exception as e:
            logger.error(f"Backend failure alert not sent: {e}")
