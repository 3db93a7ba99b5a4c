"""
Causal inference analysis of black carbon exposure and preterm birth.

This package estimates the effect of reducing ambient black carbon exposure on preterm birth
risk using g-computation on a logistic outcome model, with percentile bootstrap intervals for
the total population and each race/ethnicity subgroup.
"""

__version__ = "1.0.0"
__author__ = "Data Science Research"
