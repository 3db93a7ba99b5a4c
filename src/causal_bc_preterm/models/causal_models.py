"""
Population-level g-computation estimates of the black carbon effect on preterm birth.
"""

import pandas as pd
from typing import Dict, List, Optional
import logging
from dataclasses import dataclass, asdict

from ..data.preprocessor import BirthPreprocessor, TOTAL_LABEL
from .bootstrap import (
    BootstrapResampler, BootstrapResult, CONFIDENCE_LEVEL, DEFAULT_N_BOOTSTRAP, DEFAULT_SEED
)
from .outcome_model import ModelFitError


logger = logging.getLogger(__name__)


SUMMARY_COLUMNS = ['population', 'n', 'estimate', 'ci_lower', 'ci_upper', 'identified']


@dataclass(frozen=True)
class EstimateRecord:
    """Risk difference and percentile interval for one population slice."""
    population: str
    n: int
    estimate: float
    ci_lower: float
    ci_upper: float
    identified: bool = True

    def __post_init__(self):
        if self.ci_lower > self.ci_upper:
            raise ValueError(
                f"{self.population}: interval lower bound {self.ci_lower} exceeds upper bound {self.ci_upper}"
            )
        if not self.ci_lower <= self.estimate <= self.ci_upper:
            logger.warning(f"{self.population}: point estimate {self.estimate:.4f} lies outside "
                           f"the bootstrap interval [{self.ci_lower:.4f}, {self.ci_upper:.4f}]")

    @property
    def is_significant(self) -> bool:
        """True if the interval excludes zero."""
        return not (self.ci_lower <= 0 <= self.ci_upper)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class GComputationEngine:
    """
    Runs the fit, standardize and bootstrap sequence once per population slice.
    """

    def __init__(
        self,
        n_bootstrap: int = DEFAULT_N_BOOTSTRAP,
        random_state: int = DEFAULT_SEED,
        confidence_level: float = CONFIDENCE_LEVEL,
        n_jobs: int = 1,
        max_iter: int = 1000,
        preprocessor: Optional[BirthPreprocessor] = None
    ):
        """
        Initialize the g-computation engine.

        Args:
            n_bootstrap: Number of bootstrap replications per slice
            random_state: Base seed; every slice reuses it so each slice is reproducible on its own
            confidence_level: Coverage of the percentile interval
            n_jobs: Number of joblib workers for the bootstrap
            max_iter: Maximum solver iterations for each model fit
            preprocessor: Provides the population slices
        """
        self.n_bootstrap = n_bootstrap
        self.random_state = random_state
        self.confidence_level = confidence_level
        self.n_jobs = n_jobs
        self.max_iter = max_iter
        self.preprocessor = preprocessor or BirthPreprocessor()
        self.bootstrap_results: Dict[str, BootstrapResult] = {}

    def _make_resampler(self) -> BootstrapResampler:
        return BootstrapResampler(
            n_bootstrap=self.n_bootstrap,
            seed=self.random_state,
            confidence_level=self.confidence_level,
            n_jobs=self.n_jobs,
            max_iter=self.max_iter
        )

    def estimate(self, df: pd.DataFrame) -> BootstrapResult:
        """Point estimate and bootstrap distribution for one dataset."""
        return self._make_resampler().run(df)

    def analyze_population(self, df: pd.DataFrame, label: str) -> EstimateRecord:
        """
        Estimate the risk difference for one population slice.

        Args:
            df: Births in the slice
            label: Population label used in the summary table

        Returns:
            EstimateRecord for the slice; the full bootstrap result is kept in
            bootstrap_results under the same label

        Raises:
            ModelFitError: If the outcome model cannot be fit on the slice or a resample of it
        """
        logger.info(f"Estimating risk difference for population {label} (n={len(df)})")

        try:
            result = self.estimate(df)
        except ModelFitError as e:
            logger.error(f"Estimation failed for population {label}: {e}")
            raise

        record = EstimateRecord(
            population=label,
            n=len(df),
            estimate=result.point_estimate,
            ci_lower=result.ci_lower,
            ci_upper=result.ci_upper,
            identified=result.identified
        )
        self.bootstrap_results[label] = result

        logger.info(f"{label} - Risk difference: {record.estimate:.6f}, "
                    f"95% CI: [{record.ci_lower:.6f}, {record.ci_upper:.6f}]")
        return record

    def analyze_all(self, df: pd.DataFrame) -> List[EstimateRecord]:
        """
        Estimate the risk difference for the total population and each race/ethnicity subgroup.

        Args:
            df: Full birth dataset

        Returns:
            One EstimateRecord per slice, total population first
        """
        records = []
        for label, subset in self.preprocessor.iter_populations(df):
            records.append(self.analyze_population(subset, label))

        subgroup_n = sum(record.n for record in records if record.population != TOTAL_LABEL)
        logger.info(f"Subgroups cover {subgroup_n} of {len(df)} births")

        return records

    @staticmethod
    def summary_table(records: List[EstimateRecord], decimals: int = 4) -> pd.DataFrame:
        """
        Assemble estimate records into the summary table.

        Args:
            records: Records from analyze_all or analyze_population
            decimals: Rounding applied to the estimate and interval bounds

        Returns:
            DataFrame with one row per population
        """
        table = pd.DataFrame([record.to_dict() for record in records], columns=SUMMARY_COLUMNS)
        table[['estimate', 'ci_lower', 'ci_upper']] = table[['estimate', 'ci_lower', 'ci_upper']].round(decimals)
        return table
