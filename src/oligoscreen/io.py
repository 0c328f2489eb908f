"""FASTA loading for templates, references and exclusivity sets."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from Bio import SeqIO

from .model import ReferenceSet, TemplateSequence

LOGGER = logging.getLogger(__name__)


def _records(path: Path) -> List[Tuple[str, str]]:
    path = Path(path)
    if not path.exists():
        raise ValueError(f"FASTA file '{path}' not found.")
    with path.open("r", encoding="utf-8") as handle:
        records = [(record.id, "".join(str(record.seq).split()).upper()) for record in SeqIO.parse(handle, "fasta")]
    return [(name, seq) for name, seq in records if seq]


def read_template(path: Path) -> TemplateSequence:
    """Read the first record of a FASTA file as the template."""

    records = _records(path)
    if not records:
        raise ValueError(f"No sequences found in template FASTA '{path}'.")
    if len(records) > 1:
        LOGGER.warning("Template FASTA %s holds %d records; using '%s'.", path, len(records), records[0][0])
    name, sequence = records[0]
    return TemplateSequence(name=name, sequence=sequence)


def read_references(path: Path) -> ReferenceSet:
    records = _records(path)
    if not records:
        raise ValueError(f"No sequences found in FASTA '{path}'.")
    names, sequences = zip(*records)
    return ReferenceSet(names=names, sequences=sequences)


def merge_exclusivity(paths: Iterable[Path]) -> Optional[ReferenceSet]:
    """Concatenate several off-target FASTA files in order.

    Unreadable or empty files are skipped with a warning; returns None when
    nothing usable remains.
    """

    combined = ReferenceSet()
    for path in paths:
        try:
            combined = combined.extend(read_references(path))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Skipping exclusivity file %s: %s", path, exc)
    if not len(combined):
        return None
    return combined


def reverse_complement(sequence: str) -> str:
    comp = str.maketrans("ACGTURYKMBVDHNacgturykmbvdhn", "TGCAAYRMKVBHDNtgcaayrmkvbhdn")
    return sequence.translate(comp)[::-1]


def codon_spaced(sequence: str) -> str:
    return " ".join(sequence[i : i + 3] for i in range(0, len(sequence), 3))


def format_sequence_for_display(sequence: str, *, reverse_comp: bool = False, codon_spacing: bool = False) -> str:
    text = reverse_complement(sequence) if reverse_comp else sequence
    if codon_spacing:
        text = codon_spaced(text)
    return text


__all__ = [
    "codon_spaced",
    "format_sequence_for_display",
    "merge_exclusivity",
    "read_references",
    "read_template",
    "reverse_complement",
]
