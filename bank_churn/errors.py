"""
Exceptions raised by the churn pipeline.

All of them are fatal to a run. They subclass ValueError so callers that
already catch bad-data errors keep working.
"""

from __future__ import annotations


class ChurnPipelineError(ValueError):
    """Base class for pipeline failures."""


class SchemaError(ChurnPipelineError):
    """A required column is missing or has the wrong type."""


class DataQualityError(ChurnPipelineError):
    """Duplicate rows, missing values or out-of-range labels after cleaning."""


class ParameterError(ChurnPipelineError):
    """Invalid split fraction, hyperparameter grid, fold count or model family."""


class DegenerateMetricError(ChurnPipelineError):
    """A confusion-matrix denominator is zero."""
