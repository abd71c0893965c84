import pytest

# Ground state energies of the open Heisenberg chain, by number of sites.
EXACT_ENERGIES = {
    4: -1.6160254037844386,
    6: -2.4935771338879262,
    8: -3.3749325986878841,
    20: -8.6824733343978,
}


@pytest.fixture
def exact_energies():
    return EXACT_ENERGIES
