from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from tests.snapshot_helpers import SAMPLE_GO_MOD, MOD_URI, FakeFile, parsed_module


@pytest.fixture
def mod_file() -> FakeFile:
    return FakeFile(MOD_URI, version=3, content=SAMPLE_GO_MOD.encode("utf-8"))


@pytest.fixture
def sample_parsed():
    return parsed_module(SAMPLE_GO_MOD)


@pytest.fixture
def write_module(tmp_path: Path):
    def _write(text: str, name: str = "go.mod") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
