"""
Logging, output and reporting helpers for the black carbon g-computation analysis.
"""

import pandas as pd
import numpy as np
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import json

from ..data.preprocessor import BirthPreprocessor, DESIGN_COLUMNS, EXPOSURE_COL, OUTCOME_COL, TOTAL_LABEL
from .config import AnalysisConfig


logger = logging.getLogger(__name__)

PACKAGE_LOGGER = 'causal_bc_preterm'
SMD_THRESHOLD = 0.1


def setup_logging(level: str = "INFO", log_file: Optional[Union[str, Path]] = None) -> None:
    """
    Set up logging for an analysis run.

    The package logger gets the requested level; matplotlib is held at WARNING so
    figure rendering does not flood DEBUG runs.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that receives a copy of the log
    """
    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown logging level: {level}")

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)
    logging.getLogger('matplotlib').setLevel(logging.WARNING)


def prepare_output_dirs(config: AnalysisConfig) -> Tuple[Path, Path]:
    """Create the figures and results directories named in the configuration."""
    figures_dir = Path(config.figures_dir)
    results_dir = Path(config.results_dir)
    for path in (figures_dir, results_dir):
        path.mkdir(parents=True, exist_ok=True)
    return figures_dir, results_dir


def _to_builtin(value: Any) -> Any:
    # numpy scalars from pandas rows are not JSON serializable
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def save_results(
    estimates: Union[Sequence[Any], pd.DataFrame],
    filepath: Union[str, Path],
    metadata: Optional[Dict[str, Any]] = None
) -> Path:
    """
    Write risk difference estimates to a JSON file.

    Args:
        estimates: EstimateRecord objects from the engine, or its summary_table output
        filepath: Destination path, must end in .json
        metadata: Run settings and data summary stored next to the estimates

    Returns:
        Path the results were written to
    """
    filepath = Path(filepath)
    if filepath.suffix != '.json':
        raise ValueError(f"Unsupported file format: {filepath.suffix}")

    if isinstance(estimates, pd.DataFrame):
        rows = estimates.to_dict(orient='records')
    else:
        rows = [record.to_dict() for record in estimates]

    payload = {'metadata': metadata or {}, 'estimates': rows}
    with open(filepath, 'w') as f:
        json.dump(payload, f, indent=2, default=_to_builtin)

    logger.info(f"Saved {len(rows)} estimates to {filepath}")
    return filepath


def covariate_summary(df: pd.DataFrame, preprocessor: Optional[BirthPreprocessor] = None) -> pd.DataFrame:
    """
    Covariate distribution in each analyzed population.

    Args:
        df: Birth dataset
        preprocessor: Provides the population slices

    Returns:
        DataFrame indexed by population, total first
    """
    preprocessor = preprocessor or BirthPreprocessor()

    rows = {}
    for label, subset in preprocessor.iter_populations(df):
        rows[label] = {
            'n': len(subset),
            'maternal_age_mean': subset['maternal_age'].mean(),
            'maternal_age_std': subset['maternal_age'].std(),
            'birth_weight_mean': subset['birth_weight'].mean(),
            'birth_weight_std': subset['birth_weight'].std(),
            'infant_sex_share': subset['infant_sex'].mean(),
            'education_median': subset['education'].median(),
        }

    return pd.DataFrame.from_dict(rows, orient='index')


def descriptive_table(df: pd.DataFrame, group_col: str = 'race') -> pd.DataFrame:
    """
    Births, preterm rate and exposure prevalence by group, with a total row.

    Args:
        df: Birth dataset
        group_col: Column defining the groups

    Returns:
        DataFrame indexed by group
    """
    def _describe(frame: pd.DataFrame) -> Dict[str, float]:
        exposed = frame[frame[EXPOSURE_COL] == 1]
        unexposed = frame[frame[EXPOSURE_COL] == 0]
        return {
            'n': len(frame),
            'preterm_rate': frame[OUTCOME_COL].mean(),
            'exposure_prevalence': frame[EXPOSURE_COL].mean(),
            'preterm_rate_exposed': exposed[OUTCOME_COL].mean() if len(exposed) else np.nan,
            'preterm_rate_unexposed': unexposed[OUTCOME_COL].mean() if len(unexposed) else np.nan,
        }

    rows = {group: _describe(frame) for group, frame in df.groupby(group_col)}
    rows[TOTAL_LABEL] = _describe(df)

    return pd.DataFrame.from_dict(rows, orient='index')


def check_balance(
    df: pd.DataFrame,
    covariates: Optional[List[str]] = None,
    threshold: float = SMD_THRESHOLD
) -> pd.DataFrame:
    """
    Compare the outcome model covariates between exposed and unexposed births.

    Education enters as its indicator columns, as in the outcome model.

    Args:
        df: Birth dataset
        covariates: Design columns to compare; defaults to every covariate in the model
        threshold: Absolute standardized mean difference above which a covariate is flagged

    Returns:
        DataFrame with one row per covariate
    """
    design = BirthPreprocessor.build_design_matrix(df)
    covariates = covariates or [col for col in DESIGN_COLUMNS if col != EXPOSURE_COL]

    unknown = [col for col in covariates if col not in design.columns or col == EXPOSURE_COL]
    if unknown:
        raise ValueError(f"Not outcome model covariates: {unknown}")

    exposed = design[design[EXPOSURE_COL] == 1]
    unexposed = design[design[EXPOSURE_COL] == 0]

    balance_stats = []
    for covariate in covariates:
        pooled_sd = np.sqrt((exposed[covariate].var() + unexposed[covariate].var()) / 2)
        diff = exposed[covariate].mean() - unexposed[covariate].mean()
        smd = diff / pooled_sd if pooled_sd > 0 else 0.0

        balance_stats.append({
            'covariate': covariate,
            'exposed_mean': exposed[covariate].mean(),
            'unexposed_mean': unexposed[covariate].mean(),
            'standardized_mean_diff': smd,
            'imbalanced': abs(smd) > threshold
        })

    return pd.DataFrame(balance_stats)


def format_results_table(records: List[Any], title: str = "Risk Difference Estimates") -> str:
    """
    Format estimate records as a plain-text table for reporting.

    Populations whose exposure does not vary are starred and footnoted.

    Args:
        records: EstimateRecord objects
        title: Title for the table

    Returns:
        Formatted table string
    """
    table_lines = [f"\n{title}", "=" * len(title)]

    headers = ["Population", "N", "Estimate", "95% CI", "Significant"]
    widths = [12, 10, 10, 20, 11]
    table_lines.append(" | ".join(f"{h:>{w}}" for h, w in zip(headers, widths)))
    table_lines.append("-" * (sum(widths) + 3 * (len(widths) - 1)))

    any_unidentified = False
    for record in records:
        significance = "Yes" if record.is_significant else "No"
        ci_str = f"[{record.ci_lower:.4f}, {record.ci_upper:.4f}]"
        population = record.population[:11]
        if not record.identified:
            population += "*"
            any_unidentified = True

        row = [
            population,
            f"{record.n:,}",
            f"{record.estimate:.4f}",
            ci_str,
            significance
        ]
        table_lines.append(" | ".join(f"{cell:>{w}}" for cell, w in zip(row, widths)))

    if any_unidentified:
        table_lines.append("* exposure does not vary in this population; the estimate is not identified")

    return "\n".join(table_lines)
