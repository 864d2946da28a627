# src/contextpack/utils/tokenizer.py
import logging

import tiktoken

from contextpack.config import DEFAULT_PRICE_PER_1K_TOKENS

log = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


class Tokenizer:
    _encoding = None

    @classmethod
    def get_encoding(cls):
        if cls._encoding is None:
            try:
                cls._encoding = tiktoken.get_encoding("cl100k_base")
            except Exception:
                # Fallback
                cls._encoding = tiktoken.get_encoding("p50k_base")
        return cls._encoding

    @staticmethod
    def estimate(text: str) -> int:
        """Cheap character based estimate, the one stored in a ContextBundle."""
        return len(text) // CHARS_PER_TOKEN

    @staticmethod
    def count(text: str) -> int:
        """Exact token count for a given text."""
        try:
            encoding = Tokenizer.get_encoding()
            return len(encoding.encode(text, disallowed_special=()))
        except Exception as e:
            # Encodings are fetched on first use and may be unavailable offline
            log.debug("Falling back to token estimate: %s", e)
            return Tokenizer.estimate(text)


def estimate_cost(tokens: int, price_per_thousand: float = DEFAULT_PRICE_PER_1K_TOKENS) -> float:
    return tokens / 1000 * price_per_thousand
