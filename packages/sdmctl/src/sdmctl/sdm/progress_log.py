from __future__ import annotations

from typing import Protocol


class ProgressLog(Protocol):
    def write(self, text: str) -> None:
        ...


class StringCapturingProgressLog:
    def __init__(self) -> None:
        self._chunks: list[str] = []

    def write(self, text: str) -> None:
        if text:
            self._chunks.append(text)

    @property
    def log(self) -> str:
        return "".join(self._chunks)


class DelimitedProgressLog:
    """Adds a trailing delimiter to every write made to a wrapped log."""

    def __init__(self, delegate: ProgressLog, delimiter: str = "\n") -> None:
        self._delegate = delegate
        self._delimiter = delimiter

    def write(self, text: str) -> None:
        if not text:
            return
        self._delegate.write(text if text.endswith(self._delimiter) else text + self._delimiter)
