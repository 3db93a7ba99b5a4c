"""
Main analysis script for the effect of black carbon exposure on preterm birth.

This script estimates, by g-computation with percentile bootstrap intervals, how much preterm
birth risk would change if every birth had low black carbon exposure, for the total population
and for each race/ethnicity subgroup.
"""

import sys
import argparse
from pathlib import Path
import logging

# Add src to path for imports
sys.path.append(str(Path(__file__).parent / "src"))

from causal_bc_preterm.data.loader import BirthDataLoader
from causal_bc_preterm.data.preprocessor import BirthPreprocessor
from causal_bc_preterm.models.causal_models import GComputationEngine
from causal_bc_preterm.visualization.plots import EffectVisualization
from causal_bc_preterm.utils.config import AnalysisConfig
from causal_bc_preterm.utils.helpers import (
    setup_logging, save_results, descriptive_table, check_balance,
    covariate_summary, format_results_table, prepare_output_dirs
)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--data", help="Birth dataset CSV (overrides config)")
    parser.add_argument("--n-bootstrap", type=int, help="Bootstrap replications per population")
    parser.add_argument("--seed", type=int, help="Base random seed")
    parser.add_argument("--n-jobs", type=int, help="Parallel bootstrap workers (-1 for all cores)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AnalysisConfig:
    values = AnalysisConfig.from_json(args.config).to_dict() if args.config else {}
    overrides = {
        'data_path': args.data,
        'n_bootstrap': args.n_bootstrap,
        'seed': args.seed,
        'n_jobs': args.n_jobs,
    }
    values.update({key: value for key, value in overrides.items() if value is not None})
    return AnalysisConfig.from_dict(values)


def main(argv=None):
    """Run the complete g-computation analysis pipeline."""

    config = build_config(parse_args(argv))

    # Setup
    setup_logging(level=config.log_level)
    logger = logging.getLogger(__name__)

    figures_dir, results_dir = prepare_output_dirs(config)

    logger.info("Starting g-computation analysis of black carbon exposure and preterm birth")

    # Step 1: Load data
    logger.info("Step 1: Loading data")
    loader = BirthDataLoader()
    births = loader.load_data(config.data_path)
    loader.describe_dataset()

    # Step 2: Descriptive analysis
    logger.info("Step 2: Descriptive analysis")
    descriptives = descriptive_table(births)
    descriptives.to_csv(results_dir / "descriptive_table.csv")
    preprocessor = BirthPreprocessor()
    covariate_summary(births, preprocessor).to_csv(results_dir / "covariates_by_population.csv")

    balance_stats = check_balance(births)
    balance_stats.to_csv(results_dir / "covariate_balance.csv", index=False)
    imbalanced = balance_stats[balance_stats['imbalanced']]
    logger.info(f"Found {len(imbalanced)} imbalanced covariates (|SMD| > 0.1)")

    visualizer = EffectVisualization()
    visualizer.plot_exposure_outcome_by_race(
        births, save_path=figures_dir / "exposure_outcome_by_race.png"
    )

    # Step 3: G-computation with bootstrap intervals, one population at a time
    logger.info("Step 3: Estimating risk differences")
    engine = GComputationEngine(
        n_bootstrap=config.n_bootstrap,
        random_state=config.seed,
        confidence_level=config.confidence_level,
        n_jobs=config.n_jobs,
        max_iter=config.max_iter,
        preprocessor=preprocessor
    )
    records = engine.analyze_all(births)

    # Step 4: Reporting
    logger.info("Step 4: Generating results summary")
    summary = engine.summary_table(records)
    summary.to_csv(results_dir / "risk_difference_summary.csv", index=False)

    visualizer.plot_forest(records, save_path=figures_dir / "forest_plot.png")
    for label, result in engine.bootstrap_results.items():
        visualizer.plot_bootstrap_distribution(
            result.replicates, result.point_estimate, (result.ci_lower, result.ci_upper),
            title=f"Bootstrap distribution: {label}",
            save_path=figures_dir / f"bootstrap_{label}.png"
        )

    metadata = {
        'config': config.to_dict(),
        'data_summary': {
            'n_observations': len(births),
            'preterm_rate': float(births['preterm'].mean()),
            'exposure_prevalence': float(births['black_carbon'].mean()),
        },
        'balance_analysis': {
            'n_imbalanced_covariates': len(imbalanced),
            'max_imbalance': float(balance_stats['standardized_mean_diff'].abs().max())
        }
    }
    save_results(records, results_dir / "gcomputation_results.json", metadata=metadata)

    print("\n" + "=" * 80)
    print("G-COMPUTATION ANALYSIS RESULTS")
    print("=" * 80)
    print(format_results_table(records, "Risk Difference (low exposure - current)"))

    print(f"\nData Summary:")
    print(f"- Total births: {len(births):,}")
    print(f"- Preterm rate: {births['preterm'].mean():.1%}")
    print(f"- Exposed (black carbon > 0.20 mg/m3): {births['black_carbon'].mean():.1%}")

    logger.info("Analysis complete! Check the figures/ and results/ directories for outputs.")
    print(f"\nAnalysis complete! Outputs saved to:")
    print(f"- Figures: {figures_dir}")
    print(f"- Results: {results_dir}")


if __name__ == "__main__":
    main()
