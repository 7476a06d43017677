from pathlib import Path
import sys

import pytest

# Make the flat top-level modules importable regardless of where pytest runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from database import BloodBank


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def bank(data_dir):
    b = BloodBank(data_dir)
    assert b.load_all() == []
    return b


@pytest.fixture
def write_file(data_dir):
    """Write raw lines into a data file before a bank loads it."""

    def _write(name, *lines):
        data_dir.mkdir(parents=True, exist_ok=True)
        path = data_dir / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
