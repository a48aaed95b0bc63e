"""This module implements the byte queue shared between the receive thread and the tokenizer.

The channel is the only synchronization point between acquisition and tokenization.
It is unbounded: :code:`push` never blocks and never drops a byte, :code:`try_pop` never blocks.
Each producer's bytes are observed in the order they were pushed.
"""

from queue import Empty, SimpleQueue
from typing import Iterable, Optional


class ByteChannel:
    """Thread safe, unbounded FIFO of single byte values (ints in range 0..255)"""

    __slots__ = ("_queue",)

    def __init__(self):
        self._queue: SimpleQueue = SimpleQueue()

    def push(self, byte: int) -> None:
        """Append one byte to the tail of the channel.

        Parameters
        ----------
        byte: int
            the byte value to append

        Raises
        ------
        ValueError
            if the value is not a byte
        """
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"not a byte value: {byte}")
        self._queue.put_nowait(byte)

    def extend(self, data: Iterable[int]) -> None:
        """Append all bytes of :code:`data` in order."""
        for byte in bytes(data):
            self._queue.put_nowait(byte)

    def try_pop(self) -> Optional[int]:
        """Remove and return the head byte or :code:`None` if the channel is empty."""
        try:
            return self._queue.get_nowait()
        except Empty:
            return None

    def qsize(self) -> int:
        """Approximate number of bytes currently in the channel"""
        return self._queue.qsize()

    def empty(self) -> bool:
        """Return :code:`True` if the channel is (approximately) empty"""
        return self._queue.empty()
