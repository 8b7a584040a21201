import pytest

from ripplex import get_stack_depth


@pytest.fixture(autouse=True)
def _stack_unwound():
    """Every test must leave the active-effect stack empty."""
    yield
    assert get_stack_depth() == 0
