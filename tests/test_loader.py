from __future__ import annotations

import pytest

from refinterp import Interpreter, MultipleStarTargetsError, ProgramCode, UnsupportedSyntaxError


@pytest.mark.parametrize(
    "source",
    [
        "def f():\n    pass\n",
        "class C:\n    pass\n",
        "import os\n",
        "x = [n for n in range(3)]\n",
        "x = lambda: 1\n",
        "try:\n    pass\nexcept Exception:\n    pass\n",
        "x = b'bytes'\n",
        "x = 1j\n",
        "x = {1, 2}\n",
        "x = (1).real\n",
        "x = {**{}}\n",
        "print(*[1])\n",
        "print(sep='')\n",
        "x = f'{1}'\n",
        "x = 1 << 2\n",
        "a.b = 1\n",
        "with x:\n    pass\n",
        "x = y = (z := 3)\n",
        "x.y += 1\n",
        "x = L[0:1, 0]\n",
        "L[0, ::2] = 1\n",
    ],
)
def test_unsupported_syntax_is_rejected_at_load_time(source):
    with pytest.raises(UnsupportedSyntaxError):
        ProgramCode(source)


def test_errors_carry_the_source_location():
    with pytest.raises(UnsupportedSyntaxError) as info:
        ProgramCode("x = 1\nimport os\n", filename="prog.py")
    assert info.value.filename == "prog.py"
    assert info.value.lineno == 2
    assert info.value.text == "import os"


def test_multiple_star_targets_are_a_load_error():
    with pytest.raises(MultipleStarTargetsError):
        ProgramCode("*a, b, *c = [1, 2, 3]\n")
    with pytest.raises(MultipleStarTargetsError):
        ProgramCode("for *a, *b in [[1, 2]]:\n    pass\n")


@pytest.mark.parametrize("source", ["break\n", "continue\n", "for x in []:\n    pass\nelse:\n    break\n"])
def test_loop_control_outside_a_loop_is_rejected(source):
    with pytest.raises(SyntaxError):
        ProgramCode(source)


def test_parse_errors_are_plain_syntax_errors():
    with pytest.raises(SyntaxError):
        ProgramCode("x = = 1\n")


def test_supported_program_loads_and_runs_from_prebuilt_code():
    code = ProgramCode(
        "total = 0\nfor n in range(4):\n    if n == 2:\n        continue\n    total += n\n",
        filename="sum.py",
    )
    assert code.filename == "sum.py"
    assert len(code.body) == 2

    interpreter = Interpreter()
    first = interpreter.execute(code)
    second = interpreter.execute(code)
    assert first.read("total") == second.read("total") == 4
    assert first.frame is not second.frame


def test_whole_subscript_slices_still_load():
    ProgramCode("L = [1, 2, 3]\nx = L[1:]\nL[::2] = [0, 0]\ndel L[:1]\n")


def test_nonlocal_declarations_are_recorded_for_the_interpreter():
    code = ProgramCode("nonlocal x\nx = 1\n")
    assert [node.names for node in code.nonlocal_declarations] == [["x"]]
    assert ProgramCode("global x\nx = 1\n").nonlocal_declarations == []
