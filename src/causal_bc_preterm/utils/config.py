"""
Run configuration for the analysis.
"""

import json
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Union


logger = logging.getLogger(__name__)


@dataclass
class AnalysisConfig:
    """Settings for one batch run of the analysis."""
    data_path: str = "data/births.csv"
    n_bootstrap: int = 10000
    seed: int = 2023
    confidence_level: float = 0.95
    n_jobs: int = 1
    max_iter: int = 1000
    figures_dir: str = "figures"
    results_dir: str = "results"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.n_bootstrap < 1:
            raise ValueError(f"n_bootstrap must be positive, got {self.n_bootstrap}")
        if not 0 < self.confidence_level < 1:
            raise ValueError(f"confidence_level must be in (0, 1), got {self.confidence_level}")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be nonzero")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be positive, got {self.max_iter}")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "AnalysisConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**values)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "AnalysisConfig":
        """Load a configuration from a JSON file; missing keys keep their defaults."""
        with open(path, 'r') as f:
            values = json.load(f)
        logger.info(f"Configuration loaded from {path}")
        return cls.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
