import pytest

from subunit_money import clear_currencies, load_default_currencies


@pytest.fixture
def registry():
    """
    Isolate tests that register or clear currencies.

    The default table is restored afterwards, so other tests (and the
    module-level Money instances they build) see the bundled currencies.
    """
    clear_currencies()
    load_default_currencies()
    yield
    clear_currencies()
    load_default_currencies()
