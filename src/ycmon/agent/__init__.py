"""
Host-side harness for the output: a metric type, a system collector and
a flush loop.
"""

from .metric import Metric
from .runner import OutputRunner

__all__ = [
    "Metric",
    "OutputRunner",
]
