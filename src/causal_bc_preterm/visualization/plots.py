"""
Visualization module for the black carbon g-computation analysis.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
from typing import List, Optional, Tuple
import logging

from ..data.preprocessor import RACE_LABELS
from ..models.causal_models import EstimateRecord


logger = logging.getLogger(__name__)


class EffectVisualization:
    """Creates figures for the risk difference estimates and the descriptive data."""

    def __init__(self, figsize: Tuple[int, int] = (10, 6)):
        """
        Initialize visualization settings.

        Args:
            figsize: Default figure size
        """
        plt.style.use('default')
        sns.set_palette("husl")
        self.figsize = figsize
        self.colors = {
            'primary': '#2E86AB',
            'secondary': '#A23B72',
            'accent': '#F18F01',
            'neutral': '#C73E1D',
            'light_gray': '#F5F5F5',
            'dark_gray': '#333333'
        }

    def _finish(self, fig, save_path: Optional[str], name: str, show: bool) -> None:
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=300, bbox_inches='tight')
            logger.info(f"{name} saved to {save_path}")

        if show:
            plt.show()
        plt.close(fig)

    def plot_forest(
        self,
        records: List[EstimateRecord],
        save_path: Optional[str] = None,
        show: bool = False
    ) -> plt.Figure:
        """
        Forest plot of risk differences with their bootstrap intervals.

        Args:
            records: One record per population, plotted top to bottom
            save_path: Path to save the figure
            show: Display the figure interactively

        Returns:
            The matplotlib figure
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        labels = [RACE_LABELS.get(r.population, r.population) for r in records]
        estimates = np.array([r.estimate for r in records])
        errors_lower = estimates - np.array([r.ci_lower for r in records])
        errors_upper = np.array([r.ci_upper for r in records]) - estimates

        y_pos = np.arange(len(records))[::-1]

        ax.errorbar(estimates, y_pos, xerr=[errors_lower, errors_upper],
                    fmt='s', markersize=8, capsize=5, capthick=2,
                    color=self.colors['primary'], ecolor=self.colors['dark_gray'])

        ax.axvline(x=0, color=self.colors['neutral'], linestyle='--', alpha=0.7)
        ax.set_yticks(y_pos)
        ax.set_yticklabels([f"{label} (n={r.n:,})" for label, r in zip(labels, records)])
        ax.set_xlabel('Risk Difference (low exposure - current)', fontweight='bold')
        ax.set_title('Effect of Reducing Black Carbon Exposure on Preterm Birth',
                     fontweight='bold', fontsize=14)
        ax.grid(True, alpha=0.3)

        for y, r in zip(y_pos, records):
            ax.text(r.ci_upper, y + 0.15, f'{r.estimate:.4f}', va='bottom', ha='left', fontsize=9)

        self._finish(fig, save_path, "Forest plot", show)
        return fig

    def plot_exposure_outcome_by_race(
        self,
        df: pd.DataFrame,
        save_path: Optional[str] = None,
        show: bool = False
    ) -> plt.Figure:
        """
        Preterm rates by exposure within race/ethnicity, and exposure prevalence.

        Args:
            df: Birth dataset
            save_path: Path to save the figure
            show: Display the figure interactively

        Returns:
            The matplotlib figure
        """
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(15, 6))

        subset = df[df['race'].isin(list(RACE_LABELS))]
        preterm_rates = subset.groupby(['race', 'black_carbon'])['preterm'].mean().unstack()

        preterm_rates.plot(kind='bar', ax=ax1, color=[self.colors['light_gray'], self.colors['primary']],
                           edgecolor=self.colors['dark_gray'])
        ax1.set_title('Preterm Birth Rate by Race/Ethnicity and Exposure')
        ax1.set_xlabel('Race/Ethnicity')
        ax1.set_ylabel('Preterm Rate')
        ax1.legend(['Black carbon <= 0.20', 'Black carbon > 0.20'])
        ax1.tick_params(axis='x', rotation=45)

        exposure_rates = subset.groupby('race')['black_carbon'].mean()
        exposure_rates.plot(kind='bar', ax=ax2, color=self.colors['accent'])
        ax2.set_title('Exposure Prevalence by Race/Ethnicity')
        ax2.set_xlabel('Race/Ethnicity')
        ax2.set_ylabel('Proportion Exposed')
        ax2.tick_params(axis='x', rotation=45)

        self._finish(fig, save_path, "Exposure/outcome plot", show)
        return fig

    def plot_bootstrap_distribution(
        self,
        replicates: np.ndarray,
        point_estimate: float,
        ci: Tuple[float, float],
        title: str = 'Bootstrap Distribution of the Risk Difference',
        save_path: Optional[str] = None,
        show: bool = False
    ) -> plt.Figure:
        """Histogram of bootstrap replicates with the point estimate and interval marked."""
        fig, ax = plt.subplots(figsize=self.figsize)

        sns.histplot(replicates, bins=50, ax=ax, color=self.colors['primary'])
        ax.axvline(point_estimate, color=self.colors['neutral'], linewidth=2, label='Point estimate')
        for bound in ci:
            ax.axvline(bound, color=self.colors['dark_gray'], linestyle='--', alpha=0.8)
        ax.set_xlabel('Risk Difference')
        ax.set_title(title, fontweight='bold')
        ax.legend()

        self._finish(fig, save_path, "Bootstrap distribution plot", show)
        return fig
