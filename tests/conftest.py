import pytest

from .helpers import make_adult_inputs, make_child_inputs


@pytest.fixture
def adult_inputs():
    return make_adult_inputs()


@pytest.fixture
def child_inputs():
    return make_child_inputs(n_rows=101)
