from __future__ import annotations

import io
import os
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from table_to_xlsx.config import Settings


@pytest.fixture
def base_settings() -> Settings:
    """Settings with defaults only, isolated from the environment."""
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def simple_table_html() -> str:
    return """
    <table>
      <thead><tr><th>Name</th><th>Age</th></tr></thead>
      <tbody>
        <tr><td>Alice</td><td>30</td></tr>
        <tr><td>Bob</td><td>25</td></tr>
      </tbody>
    </table>
    """


@pytest.fixture
def spanning_table_html() -> str:
    """Header colspan plus a rowspan in the body."""
    return """
    <table>
      <tr><th colspan="2">Group</th><th>Total</th></tr>
      <tr><td rowspan="2">A</td><td>x</td><td>1</td></tr>
      <tr><td>y</td><td>2</td></tr>
    </table>
    """


@pytest.fixture
def load_sheet() -> Callable[[bytes | Path], Worksheet]:
    """Return a loader for the active worksheet of an xlsx payload or file."""

    def _load(source: bytes | Path) -> Worksheet:
        if isinstance(source, bytes):
            return load_workbook(io.BytesIO(source)).active
        return load_workbook(source).active

    return _load
