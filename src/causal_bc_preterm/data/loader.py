"""
Data loading module for birth certificate records with black carbon exposure.
"""

import pandas as pd
from pathlib import Path
from typing import Union
import logging

from .preprocessor import BirthPreprocessor, EDUCATION_LEVELS, EXPOSURE_THRESHOLD


logger = logging.getLogger(__name__)


NUMERIC_COLUMNS = ['maternal_age', 'birth_weight']
BINARY_COLUMNS = ['infant_sex', 'preterm', 'black_carbon']

REQUIRED_COLUMNS = [
    'maternal_age', 'education', 'infant_sex', 'birth_weight',
    'preterm', 'race', 'black_carbon'
]


class DataValidationError(ValueError):
    """Raised when the input file does not match the expected schema."""

    def __init__(self, column: str, message: str):
        self.column = column
        super().__init__(f"Column '{column}': {message}")


class BirthDataLoader:
    """Loads and validates the birth certificate dataset (one row per birth)."""

    def __init__(self, exposure_threshold: float = EXPOSURE_THRESHOLD):
        """
        Initialize the data loader.

        Args:
            exposure_threshold: Concentration (mg/m3) above which a birth counts as exposed,
                used only when the file carries raw concentrations
        """
        self.exposure_threshold = exposure_threshold
        self._raw_data = None

    def load_data(self, path: Union[str, Path]) -> pd.DataFrame:
        """
        Load the birth dataset from a CSV file.

        Args:
            path: Path to the CSV file

        Returns:
            Validated dataset with the fixed column schema
        """
        logger.info(f"Loading birth dataset from {path}")

        df = pd.read_csv(path)

        # Raw concentrations are dichotomized at the exposure threshold
        if 'black_carbon' not in df.columns and 'black_carbon_conc' in df.columns:
            logger.info(f"Dichotomizing black_carbon_conc at {self.exposure_threshold} mg/m3")
            df = BirthPreprocessor.dichotomize_exposure(df, 'black_carbon_conc', self.exposure_threshold)

        df = self.validate(df)

        self._raw_data = df
        logger.info(f"Loaded dataset with {len(df)} observations and {len(df.columns)} columns")

        return df

    def validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Check the schema and codings of a birth dataset.

        Args:
            df: Dataset to validate

        Returns:
            Copy of the dataset with normalized dtypes

        Raises:
            DataValidationError: If a column is missing, has missing values or invalid codes
        """
        for col in REQUIRED_COLUMNS:
            if col not in df.columns:
                raise DataValidationError(col, "required column is missing")

        df = df.copy()

        for col in REQUIRED_COLUMNS:
            n_missing = int(df[col].isnull().sum())
            if n_missing > 0:
                raise DataValidationError(col, f"{n_missing} missing values")

        for col in NUMERIC_COLUMNS + BINARY_COLUMNS + ['education']:
            if not pd.api.types.is_numeric_dtype(df[col]):
                raise DataValidationError(col, f"expected numeric values, got dtype {df[col].dtype}")

        for col in BINARY_COLUMNS:
            invalid = ~df[col].isin([0, 1])
            if invalid.any():
                bad_values = sorted(df.loc[invalid, col].unique().tolist())
                raise DataValidationError(col, f"expected 0/1 coding, found {bad_values}")
            df[col] = df[col].astype(int)

        invalid = ~df['education'].isin(EDUCATION_LEVELS)
        if invalid.any():
            bad_values = sorted(df.loc[invalid, 'education'].unique().tolist())
            raise DataValidationError('education', f"expected integer levels 1-5, found {bad_values}")
        df['education'] = df['education'].astype(int)

        df['race'] = df['race'].astype(str).str.strip()

        for col in NUMERIC_COLUMNS:
            df[col] = df[col].astype(float)

        return df

    def describe_dataset(self) -> None:
        """Print dataset description and basic statistics."""
        if self._raw_data is None:
            logger.error("No data loaded. Call load_data() first.")
            return

        print("Dataset Overview:")
        print("=" * 50)
        print(f"Shape: {self._raw_data.shape}")
        print(f"Total births: {len(self._raw_data)}")
        print(f"Preterm rate: {self._raw_data['preterm'].mean():.3f}")
        print(f"Exposed (black carbon > {self.exposure_threshold} mg/m3): "
              f"{self._raw_data['black_carbon'].mean():.3f}")

        print("\nRace/ethnicity distribution:")
        for category, count in self._raw_data['race'].value_counts().items():
            print(f"  {category}: {count}")
