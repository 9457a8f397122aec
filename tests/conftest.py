from __future__ import annotations

import pytest

from ouilookup.config import SOURCE_ENV
from ouilookup.csv_parser import parse_lines

SAMPLE_CSV = (
    "Registry,Assignment,Organization Name,Organization Address\n"
    'MA-L,00CDFE,"Apple, Inc.",1 Infinite Loop Cupertino CA US 95014\n'
    'MA-L,3C5AB4,"Google, Inc.",1600 Amphitheatre Parkway Mountain View CA US 94043\n'
    "MA-L,485073,Microsoft Corporation,One Microsoft Way Redmond Washington US 98052\n"
    "MA-L,4857DD,Facebook Inc,1 Hacker Way Menlo Park CA US 94025\n"
    "MA-L,F0D2F1,Amazon Technologies Inc.,P.O Box 8102 Reno NV US 89507\n"
    "MA-L,0010E0,Oracle Corporation,17 Network Circle Menlo Park CA US 95025\n"
    "MA-L,000347,Intel Corporation,2111 NE 25th Ave Hillsboro OR US 97124\n"
    "MA-L,000B38,Knürr GmbH,Mariakirchener Straße 38 Arnstorf Bavaria DE 94424\n"
    'MA-L,001EFC,"JSC ""MASSA-K""","15A, Pirogovskaya nab. St.Petersburg  RU 194044"\n'
    "MA-L,0004AC,IBM Corp,3039 E Cornwallis Road Research Triangle Park NC US 27709\n"
)


@pytest.fixture
def sample_csv(tmp_path):
    """Registry CSV file shaped like the IEEE download."""
    path = tmp_path / "oui.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path


@pytest.fixture
def sample_table():
    return parse_lines(SAMPLE_CSV.splitlines())


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """No config files and no source override from the environment."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
    monkeypatch.delenv(SOURCE_ENV, raising=False)
    return tmp_path
