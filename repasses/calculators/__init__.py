"""
Calculators Package

Provides all calculation components for the payout preview.
"""

from .aggregator import Aggregator
from .allocation import AllocationCalculator
from .distribution_model import DistributionModelResolver
from .rate import RateResolver
from .rectification import InstallmentRectifier
from .schedule import InstallmentScheduler
from .selector import InstallmentSelector

__all__ = [
    "RateResolver",
    "DistributionModelResolver",
    "InstallmentSelector",
    "AllocationCalculator",
    "Aggregator",
    "InstallmentRectifier",
    "InstallmentScheduler",
]
