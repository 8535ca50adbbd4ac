"""Slack markup helpers used in chat responses."""

from __future__ import annotations

SUCCESS_COLOR = "#45B254"
WARNING_COLOR = "#D7B958"
ERROR_COLOR = "#D94649"


def bold(text: str) -> str:
    return f"*{text}*"


def italic(text: str) -> str:
    return f"_{text}_"


def code_line(text: str) -> str:
    return f"`{text}`"


def code_block(text: str) -> str:
    return f"```\n{text}\n```"


def url(target: str, label: str | None = None) -> str:
    return f"<{target}|{label}>" if label else f"<{target}>"


def channel(channel_id: str) -> str:
    return f"<#{channel_id}>"


def _message(title: str, text: str, color: str, footer: str | None) -> dict[str, object]:
    attachment: dict[str, object] = {
        "author_name": title,
        "text": text,
        "fallback": text,
        "color": color,
        "mrkdwn_in": ["text"],
    }
    if footer:
        attachment["footer"] = footer
    return {"attachments": [attachment]}


def success_message(title: str, text: str, footer: str | None = None) -> dict[str, object]:
    return _message(title, text, SUCCESS_COLOR, footer)


def warning_message(title: str, text: str, footer: str | None = None) -> dict[str, object]:
    return _message(title, text, WARNING_COLOR, footer)


def error_message(title: str, text: str, footer: str | None = None) -> dict[str, object]:
    return _message(title, text, ERROR_COLOR, footer)


def message_text(message: object) -> str:
    if isinstance(message, str):
        return message
    if isinstance(message, dict):
        parts = [str(att.get("text", "")) for att in message.get("attachments", []) if isinstance(att, dict)]
        return "\n".join(parts)
    return str(message)
