"""
Quick analysis script: runs the pipeline on simulated births with a reduced bootstrap.
"""

import sys
from pathlib import Path
import logging

# Add src to path for imports
sys.path.append(str(Path(__file__).parent / "src"))

from causal_bc_preterm.data.loader import BirthDataLoader
from causal_bc_preterm.data.simulation import simulate_births
from causal_bc_preterm.models.causal_models import GComputationEngine
from causal_bc_preterm.visualization.plots import EffectVisualization
from causal_bc_preterm.utils.config import AnalysisConfig
from causal_bc_preterm.utils.helpers import (
    setup_logging, descriptive_table, format_results_table, prepare_output_dirs
)


def main():
    """Run a quick g-computation analysis on simulated data."""

    config = AnalysisConfig(data_path="data/simulated/simulated_births.csv", n_bootstrap=200, n_jobs=-1)

    setup_logging(level=config.log_level)
    logger = logging.getLogger(__name__)

    figures_dir, _ = prepare_output_dirs(config)

    data_path = Path(config.data_path)
    if not data_path.exists():
        data_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Simulating birth records")
        simulate_births(n_samples=20000, exposure_log_odds=0.5, random_state=42).to_csv(data_path, index=False)

    births = BirthDataLoader().load_data(data_path)
    print(descriptive_table(births).round(3))

    engine = GComputationEngine(n_bootstrap=config.n_bootstrap, random_state=config.seed, n_jobs=config.n_jobs)
    records = engine.analyze_all(births)

    print(format_results_table(records, f"Quick Risk Difference Estimates (R={config.n_bootstrap})"))
    print(engine.summary_table(records).to_string(index=False))

    EffectVisualization().plot_forest(records, save_path=figures_dir / "forest_plot_quick.png")
    logger.info("Quick analysis complete")


if __name__ == "__main__":
    main()
