import random

import pytest

from app.core.network import NetworkModel
from app.core.seed_network import addis_ababa_network
from app.core.simulator import PositionSimulator


@pytest.fixture
def network():
    return NetworkModel().load(addis_ababa_network())


@pytest.fixture
def simulator(network):
    sim = PositionSimulator(random.Random(42), vehicles_per_route=3, capacity=60)
    sim.sync_network(network)
    return sim
