"""Numeric engines shared by the screening stack."""
from __future__ import annotations

from .encoding import ambiguity_count, decode_masks, encode_sequence

__all__ = ["ambiguity_count", "decode_masks", "encode_sequence"]
