from __future__ import annotations

import pytest

from tests.helpers.fakes import FakeConfirmer, FakeHost, ListLogger
from tests.helpers.site import make_cfg


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def confirmer():
    return FakeConfirmer(answer=True)


@pytest.fixture
def list_logger():
    return ListLogger()


@pytest.fixture
def config_manager(tmp_path):
    return make_cfg(tmp_path)


@pytest.fixture
def modules_root(tmp_path):
    root = tmp_path / "modules"
    root.mkdir()
    return root
