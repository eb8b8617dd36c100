"""공용 pytest fixture."""

import pytest

from fakes import Harness


@pytest.fixture
def harness(tmp_path):
    return Harness(tmp_path)
