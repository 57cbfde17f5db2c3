from __future__ import annotations

import sys
from pathlib import Path

# Allow importing the package when running plain `pytest` without an editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

import pytest

from refinterp import Interpreter


@pytest.fixture
def run_interpreter():
    def _run(source: str, *, emit=None, filename: str = "<test>", **options):
        interpreter = Interpreter(emit=emit, **options)
        result = interpreter.run(source, filename=filename)
        result.raise_for_exception()
        return result

    return _run


@pytest.fixture
def emitted():
    lines: list[str] = []
    return lines
