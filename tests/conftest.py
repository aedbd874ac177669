from __future__ import annotations

from collections.abc import Iterator

import pytest
from marionette_fakes import FakeChrome, FakeMarionette


@pytest.fixture
def fake_chrome() -> FakeChrome:
    return FakeChrome()


@pytest.fixture
def marionette(fake_chrome: FakeChrome) -> Iterator[FakeMarionette]:
    server = FakeMarionette(fake_chrome)
    yield server
    server.close()
