"""
G-computation: counterfactual exposure scenarios, standardized risks and the risk difference.
"""

import numpy as np
import pandas as pd
from typing import NamedTuple
import logging

from ..data.preprocessor import EXPOSURE_COL
from .outcome_model import OutcomeModel


logger = logging.getLogger(__name__)


LOW_EXPOSURE_VALUE = 0


class ScenarioPair(NamedTuple):
    """Observed exposure and the counterfactual where nobody is exposed."""
    current: pd.DataFrame
    low_exposure: pd.DataFrame


def make_scenarios(df: pd.DataFrame) -> ScenarioPair:
    """
    Build the two counterfactual copies of a dataset.

    Args:
        df: Base dataset (original data or a bootstrap draw)

    Returns:
        ScenarioPair with the dataset unchanged and a copy with exposure forced to 0
    """
    low_exposure = df.copy()
    low_exposure[EXPOSURE_COL] = LOW_EXPOSURE_VALUE
    return ScenarioPair(current=df, low_exposure=low_exposure)


def standardized_risk(model: OutcomeModel, df: pd.DataFrame) -> float:
    """Average predicted preterm risk over all rows of a scenario."""
    return float(np.mean(model.predict_risk(df)))


def risk_difference(model: OutcomeModel, df: pd.DataFrame) -> float:
    """
    Standardized risk under low exposure minus standardized risk under current exposure.

    Args:
        model: Fitted outcome model
        df: Dataset the scenarios are built from

    Returns:
        Risk difference in [-1, 1]
    """
    scenarios = make_scenarios(df)
    risk_low = standardized_risk(model, scenarios.low_exposure)
    risk_current = standardized_risk(model, scenarios.current)
    return risk_low - risk_current
