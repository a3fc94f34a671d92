import numpy as np
import pandas as pd
import pytest

from catchflow.climate import Climate
from catchflow.network import StreamNetwork
from catchflow.testing import make_chain, make_ihacres

N_STEPS = 60


@pytest.fixture
def climate() -> Climate:
    """Varying rain on the upper catchments, none on the outlet reach."""
    rng = np.random.default_rng(7)
    rain = np.where(rng.random(N_STEPS) < 0.3, rng.gamma(2.0, 8.0, N_STEPS), 0.0)
    return Climate(
        pd.DataFrame(
            {
                "Date": pd.date_range("1990-01-01", periods=N_STEPS, freq="D"),
                "head_rain": rain,
                "head_evap": np.full(N_STEPS, 3.0),
                "mid_rain": rain[::-1].copy(),
                "mid_evap": np.full(N_STEPS, 3.0),
                "outlet_rain": np.zeros(N_STEPS),
                "outlet_evap": np.zeros(N_STEPS),
            }
        )
    )


@pytest.fixture
def chain() -> StreamNetwork:
    return make_chain(make_ihacres("head", area=150.0), make_ihacres("mid", area=80.0), make_ihacres("outlet"))
