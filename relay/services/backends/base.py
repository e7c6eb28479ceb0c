from abc import ABC, abstractmethod

NOT_UNDERSTOOD_RESPONSE = "Sorry, I didn't understand that. Type 'menu' to see available options."


class BackendAdapter(ABC):
    """Turns a user utterance into reply text through an external service.

    Implementations raise ``relay.errors.BackendError`` on transport or remote
    errors; the conversation router maps that to the degraded-service reply.
    """

    name: str = "backend"

    @abstractmethod
    async def respond(self, text: str, session_id: str) -> str:
        """Return reply text for ``text``. ``session_id`` identifies the sender."""
        pass
