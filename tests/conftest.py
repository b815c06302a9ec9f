from __future__ import annotations

import pytest

from fakes import Harness


@pytest.fixture
def harness(tmp_path) -> Harness:
    return Harness(tmp_path)
