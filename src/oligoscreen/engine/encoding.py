"""IUPAC bitmask encoding shared by the variant engines."""

from __future__ import annotations

import numpy as np

BASE_A = 1
BASE_C = 2
BASE_G = 4
BASE_T = 8
GAP = 16
ANY_BASE = BASE_A | BASE_C | BASE_G | BASE_T

IUPAC_TO_MASK: dict[str, int] = {
    "A": BASE_A,
    "C": BASE_C,
    "G": BASE_G,
    "T": BASE_T,
    "U": BASE_T,
    "R": BASE_A | BASE_G,
    "Y": BASE_C | BASE_T,
    "S": BASE_C | BASE_G,
    "W": BASE_A | BASE_T,
    "K": BASE_G | BASE_T,
    "M": BASE_A | BASE_C,
    "B": BASE_C | BASE_G | BASE_T,
    "D": BASE_A | BASE_G | BASE_T,
    "H": BASE_A | BASE_C | BASE_T,
    "V": BASE_A | BASE_C | BASE_G,
    "N": ANY_BASE,
}

ASCII_TO_MASK = np.full(256, GAP, dtype=np.uint8)
for _symbol, _mask in IUPAC_TO_MASK.items():
    ASCII_TO_MASK[ord(_symbol)] = _mask
    ASCII_TO_MASK[ord(_symbol.lower())] = _mask

MASK_TO_SYMBOL = np.array(["-"] * 256, dtype="<U1")
for _symbol, _mask in IUPAC_TO_MASK.items():
    if _symbol != "U":
        MASK_TO_SYMBOL[_mask] = _symbol

POPCOUNT = np.array([bin(value).count("1") for value in range(256)], dtype=np.uint8)


def encode_sequence(sequence: str) -> np.ndarray:
    """Return a uint8 bitmask array (A=1, C=2, G=4, T=8, gap/other=16)."""

    if not sequence:
        return np.zeros((0,), dtype=np.uint8)
    raw = np.frombuffer(sequence.encode("ascii", errors="replace"), dtype=np.uint8)
    return ASCII_TO_MASK[raw]


def decode_masks(masks: np.ndarray) -> str:
    return "".join(MASK_TO_SYMBOL[np.asarray(masks, dtype=np.uint8)])


def ambiguity_count(masks: np.ndarray) -> int:
    """Number of positions whose code stands for more than one base."""

    masks = np.asarray(masks, dtype=np.uint8)
    return int(np.count_nonzero(POPCOUNT[masks & ANY_BASE] > 1))


def ambiguity_counts(matrix: np.ndarray) -> np.ndarray:
    """Row-wise :func:`ambiguity_count` for a 2D mask matrix."""

    return np.count_nonzero(POPCOUNT[matrix & ANY_BASE] > 1, axis=1)


def widening_allowed(current: np.ndarray, union: np.ndarray, *, exclude_n: bool) -> np.ndarray:
    """Positions where ``current`` may be widened to ``union``.

    Works on a single row or broadcasts over a matrix of candidate unions.
    A gap never combines with a base, and with ``exclude_n`` a position may
    not become ``N`` unless it already is one.
    """

    unchanged = union == current
    valid = (union & GAP) == 0
    if exclude_n:
        valid &= union != ANY_BASE
    return unchanged | valid


__all__ = [
    "ANY_BASE",
    "ASCII_TO_MASK",
    "GAP",
    "IUPAC_TO_MASK",
    "MASK_TO_SYMBOL",
    "POPCOUNT",
    "ambiguity_count",
    "ambiguity_counts",
    "decode_masks",
    "encode_sequence",
    "widening_allowed",
]
