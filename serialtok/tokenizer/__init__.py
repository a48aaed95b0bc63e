# pylint: disable=missing-docstring
from .tokenizer import PollResult, Tokenizer, TokenizerState, poll_token
