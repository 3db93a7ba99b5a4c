"""
Synthetic birth records with a known black carbon effect, for demonstrations and checks.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional


RACE_PROBABILITIES = {
    'AI': 0.03, 'AS': 0.10, 'BL': 0.12, 'NHPI': 0.02, 'WH': 0.38, 'HIS': 0.30, 'OT': 0.05
}


def simulate_births(
    n_samples: int = 2000,
    exposure_log_odds: float = 0.5,
    random_state: Optional[int] = 42,
    race_probabilities: Optional[Dict[str, float]] = None
) -> pd.DataFrame:
    """
    Simulate a birth dataset with the fixed column schema.

    Exposure is more likely for lower education and for some groups; preterm risk depends on
    exposure through `exposure_log_odds` and on the covariates. A small share of births has a
    race code ('OT') outside the six analyzed categories.

    Args:
        n_samples: Number of births
        exposure_log_odds: True log-odds ratio of preterm birth for exposed births
        random_state: Seed for numpy's generator
        race_probabilities: Mapping of race code to probability

    Returns:
        Simulated dataset
    """
    rng = np.random.default_rng(random_state)
    probabilities = race_probabilities or RACE_PROBABILITIES

    race = rng.choice(list(probabilities), size=n_samples, p=list(probabilities.values()))
    maternal_age = np.clip(rng.normal(28, 6, n_samples), 15, 50).round(1)
    education = rng.choice([1, 2, 3, 4, 5], size=n_samples, p=[0.1, 0.25, 0.3, 0.2, 0.15])
    infant_sex = rng.binomial(1, 0.49, n_samples)
    birth_weight = np.clip(rng.normal(7.3, 1.2, n_samples), 2.0, 12.0).round(2)

    exposure_logit = -0.3 - 0.2 * (education - 3) + 0.4 * np.isin(race, ['BL', 'HIS'])
    black_carbon = rng.binomial(1, 1 / (1 + np.exp(-exposure_logit)))

    preterm_logit = (-2.2 + exposure_log_odds * black_carbon + 0.03 * (maternal_age - 28)
                     - 0.1 * (education - 3) + 0.1 * infant_sex - 0.4 * (birth_weight - 7.3))
    preterm = rng.binomial(1, 1 / (1 + np.exp(-preterm_logit)))

    return pd.DataFrame({
        'maternal_age': maternal_age,
        'education': education,
        'infant_sex': infant_sex,
        'birth_weight': birth_weight,
        'preterm': preterm,
        'race': race,
        'black_carbon': black_carbon,
    })
