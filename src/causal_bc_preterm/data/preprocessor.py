"""
Data preprocessing module for the g-computation analysis.
"""

import pandas as pd
from typing import Dict, Iterator, Tuple
import logging


logger = logging.getLogger(__name__)


EXPOSURE_COL = 'black_carbon'
OUTCOME_COL = 'preterm'

EXPOSURE_THRESHOLD = 0.20  # mg/m3
EDUCATION_LEVELS = [1, 2, 3, 4, 5]

RACE_LABELS = {
    'AI': 'American Indian/Alaska Native',
    'AS': 'Asian',
    'BL': 'Black',
    'NHPI': 'Native Hawaiian/Pacific Islander',
    'WH': 'White',
    'HIS': 'Hispanic',
}

TOTAL_LABEL = 'Total'

# Reference level 1 is absorbed by the intercept
EDUCATION_DUMMIES = [f"education_{level}" for level in EDUCATION_LEVELS[1:]]

DESIGN_COLUMNS = [EXPOSURE_COL, 'maternal_age'] + EDUCATION_DUMMIES + ['infant_sex', 'birth_weight']


class BirthPreprocessor:
    """Builds model inputs and population slices from the birth dataset."""

    def __init__(self, race_col: str = 'race'):
        self.race_col = race_col
        self.race_labels = dict(RACE_LABELS)

    @staticmethod
    def dichotomize_exposure(
        df: pd.DataFrame,
        concentration_col: str = 'black_carbon_conc',
        threshold: float = EXPOSURE_THRESHOLD
    ) -> pd.DataFrame:
        """
        Create the binary exposure indicator from a raw concentration column.

        Args:
            df: Dataset with a concentration column in mg/m3
            concentration_col: Name of the concentration column
            threshold: Concentrations strictly above this value are exposed

        Returns:
            Copy of the dataset with the black_carbon indicator added
        """
        df = df.copy()
        df[EXPOSURE_COL] = (df[concentration_col] > threshold).astype(int)
        return df

    @staticmethod
    def build_design_matrix(df: pd.DataFrame) -> pd.DataFrame:
        """
        Build the covariate matrix for the outcome model.

        Education is expanded into indicator contrasts against level 1 with fixed categories,
        so every resample yields the same columns even when a level is absent.

        Args:
            df: Birth dataset

        Returns:
            Design matrix with columns in DESIGN_COLUMNS order
        """
        education = pd.Categorical(df['education'], categories=EDUCATION_LEVELS)
        dummies = pd.get_dummies(education, prefix='education', drop_first=True, dtype=float)
        dummies.index = df.index

        design = pd.concat([
            df[[EXPOSURE_COL, 'maternal_age']].astype(float),
            dummies,
            df[['infant_sex', 'birth_weight']].astype(float)
        ], axis=1)

        return design[DESIGN_COLUMNS]

    def subset_race(self, df: pd.DataFrame, code: str) -> pd.DataFrame:
        """Get the births belonging to one race/ethnicity code."""
        if code not in self.race_labels:
            raise ValueError(f"Unknown race/ethnicity code: {code}")
        return df[df[self.race_col] == code].copy()

    def iter_populations(self, df: pd.DataFrame) -> Iterator[Tuple[str, pd.DataFrame]]:
        """
        Yield the population slices analyzed in turn.

        The total population comes first, followed by each race/ethnicity subgroup. Births
        with any other race code appear in the total only.
        """
        yield TOTAL_LABEL, df

        for code in self.race_labels:
            yield code, self.subset_race(df, code)

    def get_population_sizes(self, df: pd.DataFrame) -> Dict[str, int]:
        """Get the number of births in each analyzed population."""
        return {label: len(subset) for label, subset in self.iter_populations(df)}

