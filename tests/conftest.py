import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from prevanc.data import RegionData


@pytest.fixture
def single_region():
    """n = 1 scenario: half the survey positive, 60% of ANC, 500 of 1000 on ART"""
    return RegionData(
        y_prev=[50], m_prev=[100],
        y_anc=[60], m_anc=[100],
        A_art=[500], N_art=[1000],
    )


@pytest.fixture
def four_regions():
    return RegionData(
        y_prev=[12, 40, 7, 90],
        m_prev=[200, 250, 150, 400],
        y_anc=[20, 55, 9, 120],
        m_anc=[180, 220, 120, 380],
        A_art=[3000, 9000, 800, 25000],
        N_art=[100000, 120000, 60000, 200000],
        regions=["north", "south", "east", "west"],
    )


@pytest.fixture
def rng():
    return np.random.default_rng(20261019)
