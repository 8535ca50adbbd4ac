from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .slack import message_text

Delivery = Literal["respond", "send", "address_users"]


@dataclass(frozen=True)
class SentMessage:
    delivery: Delivery
    message: object
    destination: str | None = None
    message_id: str | None = None


@dataclass
class BufferedMessageClient:
    """Collects outgoing chat messages and events for later rendering."""

    sent: list[SentMessage] = field(default_factory=list)

    def respond(self, message: object, message_id: str | None = None) -> None:
        self.sent.append(SentMessage("respond", message, None, message_id))

    def send(self, message: object, destination: str) -> None:
        self.sent.append(SentMessage("send", message, destination))

    def address_users(self, message: object, users: str | list[str], message_id: str | None = None) -> None:
        target = users if isinstance(users, str) else ",".join(users)
        self.sent.append(SentMessage("address_users", message, target, message_id))

    def responses(self) -> list[object]:
        return [m.message for m in self.sent if m.delivery == "respond"]

    def events(self, destination: str) -> list[object]:
        return [m.message for m in self.sent if m.delivery == "send" and m.destination == destination]

    def texts(self) -> list[str]:
        return [message_text(m.message) for m in self.sent if m.delivery != "send"]

    def to_payload(self) -> list[dict[str, object]]:
        return [
            {
                "delivery": m.delivery,
                "destination": m.destination,
                "message_id": m.message_id,
                "message": m.message if isinstance(m.message, (str, dict, list)) else repr(m.message),
            }
            for m in self.sent
        ]
