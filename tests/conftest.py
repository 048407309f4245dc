import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def prices():
    idx = pd.date_range("2023-01-01", "2023-11-30", freq="D", name="date")
    rng = np.random.default_rng(42)
    values = 150 + np.cumsum(rng.normal(0, 1, len(idx)))
    return pd.Series(values, index=idx, name="Close")
