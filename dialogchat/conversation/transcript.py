"""Append-only chat transcript."""

from typing import Iterator, List, Tuple

from ..models.message import Message, Speaker


class Transcript:
    """Ordered message history, oldest first.

    Not thread-safe on its own; the session controller serializes writers.
    """

    def __init__(self):
        self._messages: List[Message] = []

    def append(self, text: str, speaker: Speaker) -> Message:
        message = Message(text=text, speaker=speaker, sequence_index=len(self._messages))
        self._messages.append(message)
        return message

    def append_exchange(self, user_text: str, bot_text: str) -> Tuple[Message, Message]:
        """Append a User message and its Bot reply as one unit."""
        index = len(self._messages)
        pair = (
            Message(text=user_text, speaker=Speaker.USER, sequence_index=index),
            Message(text=bot_text, speaker=Speaker.BOT, sequence_index=index + 1),
        )
        self._messages.extend(pair)
        return pair

    def clear(self) -> None:
        self._messages.clear()

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Snapshot in creation order."""
        return tuple(self._messages)

    def newest_first(self) -> Tuple[Message, ...]:
        """Snapshot in display order."""
        return tuple(reversed(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)
