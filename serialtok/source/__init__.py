# pylint: disable=missing-docstring
from .async_byte_source import AsyncByteSource, SendResult
