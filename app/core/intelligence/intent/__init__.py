"""Intent decoding module."""

from .types import Intent, IntentResult
from .decoder import (
    IntentDecoder,
    RoutingState,
    decode_intent,
    get_intent_decoder,
    looks_like_new_search,
)

__all__ = [
    # Types
    "Intent",
    "IntentResult",
    # Decoder
    "IntentDecoder",
    "RoutingState",
    "decode_intent",
    "get_intent_decoder",
    "looks_like_new_search",
]
