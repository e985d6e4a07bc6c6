import os
import subprocess
import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
EXAMPLES_DIR = REPO_ROOT / "examples"

# Each numbered example and a line its stdout must contain.
EXPECTED_OUTPUT = {
    "01_fit_auto.py": "status: CONVERGED",
    "02_weighted_fit.py": "alpha=0.0: CONVERGED",
    "03_plot_fit.py": "status: CONVERGED",
}


def _run(path: Path) -> subprocess.CompletedProcess:
    env = os.environ.copy()
    env["MPLBACKEND"] = "Agg"
    env["PYTHONPATH"] = str(REPO_ROOT / "src") + os.pathsep + env.get("PYTHONPATH", "")
    return subprocess.run(
        [sys.executable, str(path)],
        cwd=str(REPO_ROOT),
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )


def test_every_example_has_an_expectation():
    numbered = sorted(p.name for p in EXAMPLES_DIR.glob("[0-9][0-9]_*.py"))
    assert numbered == sorted(EXPECTED_OUTPUT)


@pytest.mark.examples
@pytest.mark.parametrize("name", sorted(EXPECTED_OUTPUT))
def test_example_output(name: str) -> None:
    path = EXAMPLES_DIR / name
    if "matplotlib" in path.read_text(encoding="utf-8"):
        pytest.importorskip("matplotlib")

    result = _run(path)

    assert result.returncode == 0, (
        f"{name} failed\nstdout:\n{result.stdout}\nstderr:\n{result.stderr}"
    )
    assert EXPECTED_OUTPUT[name] in result.stdout


@pytest.mark.examples
def test_fit_auto_example_streams_iterates():
    result = _run(EXAMPLES_DIR / "01_fit_auto.py")

    assert result.returncode == 0, result.stderr
    assert "N[   1] rsse = " in result.stderr
    assert "t = { 0, " in result.stderr
