"""Token encoders used to size transcript chunks."""
from __future__ import annotations

import threading
from typing import List, Optional, Protocol, Sequence

import tiktoken


class TokenEncoder(Protocol):
    """Anything that can turn text into token ids and back."""

    def encode(self, text: str) -> List[int]:
        ...

    def decode(self, tokens: Sequence[int]) -> str:
        ...

    def decode_bytes(self, tokens: Sequence[int]) -> bytes:
        ...


class TiktokenEncoder:
    """TokenEncoder backed by a tiktoken encoding.

    The encoding is loaded on first use since tiktoken may need to fetch
    its BPE file.
    """

    def __init__(self, encoding_name: str = "cl100k_base") -> None:
        self.encoding_name = encoding_name
        self._encoding: Optional[tiktoken.Encoding] = None
        self._lock = threading.Lock()

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            with self._lock:
                if self._encoding is None:
                    self._encoding = tiktoken.get_encoding(self.encoding_name)
        return self._encoding

    def encode(self, text: str) -> List[int]:
        # Transcripts are plain text; special-token markers are encoded literally.
        return self.encoding.encode(text, disallowed_special=())

    def decode(self, tokens: Sequence[int]) -> str:
        return self.encoding.decode(list(tokens))

    def decode_bytes(self, tokens: Sequence[int]) -> bytes:
        return self.encoding.decode_bytes(list(tokens))

    def count(self, text: str) -> int:
        return len(self.encode(text))
