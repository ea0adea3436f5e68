from __future__ import annotations

import pytest

from backparse import item
from backparse.general import char


@pytest.fixture
def letters():
    return item().satisfy(str.isalpha).many()


@pytest.fixture
def parens():
    return char("("), char(")")
