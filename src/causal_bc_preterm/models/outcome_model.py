"""
Outcome regression for preterm birth on exposure and covariates.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional
import logging
import warnings

from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression

from ..data.preprocessor import BirthPreprocessor, DESIGN_COLUMNS, EXPOSURE_COL, OUTCOME_COL


logger = logging.getLogger(__name__)


class ModelFitError(RuntimeError):
    """Raised when the outcome model cannot be fit on a dataset."""


class IdentifiabilityWarning(UserWarning):
    """Emitted when the exposure coefficient is not identified by the data."""


def exposure_varies(df: pd.DataFrame) -> bool:
    """True if both exposure levels occur, so the exposure coefficient is identified."""
    return df[EXPOSURE_COL].nunique() >= 2


class OutcomeModel:
    """
    Logistic regression of preterm birth on black carbon exposure and covariates.

    log-odds(preterm) = b0 + b1*black_carbon + b2*maternal_age + sum(bi*education_i)
                        + b3*infant_sex + b4*birth_weight
    """

    def __init__(self, max_iter: int = 1000, tol: float = 1e-4):
        """
        Initialize the outcome model.

        Args:
            max_iter: Maximum number of solver iterations
            tol: Solver tolerance
        """
        self.max_iter = max_iter
        self.tol = tol
        self.intercept_: Optional[float] = None
        self.coef_: Optional[pd.Series] = None
        self.n_obs_: Optional[int] = None

    @classmethod
    def from_coefficients(cls, coefficients: Dict[str, float]) -> "OutcomeModel":
        """
        Build a model with known coefficients instead of fitting it.

        Args:
            coefficients: Mapping with an 'intercept' key and any design columns;
                columns not given get a zero coefficient

        Returns:
            Model ready for prediction
        """
        unknown = set(coefficients) - set(DESIGN_COLUMNS) - {'intercept'}
        if unknown:
            raise ValueError(f"Unknown coefficient names: {sorted(unknown)}")

        model = cls()
        model.intercept_ = float(coefficients.get('intercept', 0.0))
        model.coef_ = pd.Series(
            [float(coefficients.get(col, 0.0)) for col in DESIGN_COLUMNS],
            index=DESIGN_COLUMNS
        )
        return model

    def fit(self, df: pd.DataFrame, check_identifiability: bool = True) -> "OutcomeModel":
        """
        Fit the model by maximum likelihood.

        Args:
            df: Birth dataset with outcome, exposure and covariates
            check_identifiability: Warn when the exposure does not vary; bootstrap refits
                skip this since the resampler checks the source data once

        Returns:
            The fitted model

        Raises:
            ModelFitError: If the sample is too small, the outcome does not vary,
                or the solver does not converge
        """
        n_params = len(DESIGN_COLUMNS) + 1
        if len(df) <= n_params:
            raise ModelFitError(
                f"Cannot fit outcome model on {len(df)} observations ({n_params} parameters)"
            )

        y = df[OUTCOME_COL].to_numpy()
        if np.unique(y).size < 2:
            raise ModelFitError(
                f"Outcome '{OUTCOME_COL}' is constant across {len(df)} observations"
            )

        if check_identifiability and not exposure_varies(df):
            message = (f"Exposure '{EXPOSURE_COL}' is constant across {len(df)} observations; "
                       f"its coefficient is not identified")
            logger.warning(message)
            warnings.warn(message, IdentifiabilityWarning, stacklevel=2)

        X = BirthPreprocessor.build_design_matrix(df)

        # C=inf is the unpenalized maximum likelihood fit
        estimator = LogisticRegression(C=np.inf, solver='newton-cg',
                                       max_iter=self.max_iter, tol=self.tol)

        with warnings.catch_warnings():
            warnings.filterwarnings("error", category=ConvergenceWarning)
            try:
                estimator.fit(X.to_numpy(), y)
            except ConvergenceWarning as e:
                raise ModelFitError(
                    f"Outcome model did not converge on {len(df)} observations: {e}"
                ) from e

        self.intercept_ = float(estimator.intercept_[0])
        self.coef_ = pd.Series(estimator.coef_[0], index=DESIGN_COLUMNS)
        self.n_obs_ = len(df)

        return self

    @property
    def is_fitted(self) -> bool:
        return self.coef_ is not None

    @property
    def coefficients(self) -> pd.Series:
        """Intercept and coefficients as one series."""
        self._check_fitted()
        return pd.concat([pd.Series({'intercept': self.intercept_}), self.coef_])

    def linear_predictor(self, df: pd.DataFrame) -> np.ndarray:
        self._check_fitted()
        X = BirthPreprocessor.build_design_matrix(df)
        return self.intercept_ + X.to_numpy() @ self.coef_.to_numpy()

    def predict_risk(self, df: pd.DataFrame) -> np.ndarray:
        """
        Predict the probability of preterm birth for each row.

        Args:
            df: Dataset with the same covariate schema used for fitting

        Returns:
            Array of probabilities in [0, 1]
        """
        eta = np.clip(self.linear_predictor(df), -500, 500)
        return 1.0 / (1.0 + np.exp(-eta))

    def _check_fitted(self) -> None:
        if not self.is_fitted:
            raise ModelFitError("Outcome model is not fitted. Call fit() first.")
