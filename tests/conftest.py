import sys
from pathlib import Path

import matplotlib
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from oligoscreen.model import ReferenceSet, TemplateSequence  # noqa: E402

EXAMPLE_TEMPLATE = "TATGGTACGTCATGTTCTAGAAATGGGCTGT"


def pytest_sessionstart(session):  # noqa: D401
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    plt.rcParams.update(
        {
            "figure.dpi": 120,
            "savefig.dpi": 120,
            "font.size": 10,
            "axes.grid": False,
            "axes.facecolor": "white",
        }
    )


@pytest.fixture
def template() -> TemplateSequence:
    return TemplateSequence(name="Template", sequence=EXAMPLE_TEMPLATE)


@pytest.fixture
def references() -> ReferenceSet:
    return ReferenceSet(
        names=("Ref1", "Ref2", "Ref3", "Ref4"),
        sequences=(
            EXAMPLE_TEMPLATE,
            "AATATGGTACGTCATGTTCTAGAAATGGGCTGT",
            "TATGGTTCGTCATGTTCTAGAAATGGGCTGTTTT",
            "GTATGGTACGTCATGTTCTAGAAATGGGCTGT",
        ),
    )


@pytest.fixture
def exclusivity() -> ReferenceSet:
    return ReferenceSet(names=("Excl1", "Excl2"), sequences=(EXAMPLE_TEMPLATE, "A" * 31))
