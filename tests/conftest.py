import pytest

import ledger
from models import Group


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("GROUPSPLIT_HOME", str(tmp_path / "home"))


@pytest.fixture
def trip() -> Group:
    """Group "Trip" with Alice, Bob and Carol, no expenses"""
    _, group = ledger.create_group([], "Trip")
    for name in ("Alice", "Bob", "Carol"):
        group = ledger.add_member(group, name)
    return group


@pytest.fixture
def ids(trip):
    return {m.name: m.id for m in trip.members}
