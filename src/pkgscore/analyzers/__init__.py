"""Metric calculators and the scoring pipeline."""

from pkgscore.analyzers.bus_factor import BusFactorCalculator
from pkgscore.analyzers.correctness import CorrectnessCalculator
from pkgscore.analyzers.license import LicenseCalculator, is_license_compatible
from pkgscore.analyzers.pipeline import ScoringPipeline
from pkgscore.analyzers.ramp_up import RampUpCalculator
from pkgscore.analyzers.responsiveness import ResponsivenessCalculator
from pkgscore.analyzers.scorer import NetScorer

__all__ = [
    "BusFactorCalculator",
    "CorrectnessCalculator",
    "LicenseCalculator",
    "NetScorer",
    "RampUpCalculator",
    "ResponsivenessCalculator",
    "ScoringPipeline",
    "is_license_compatible",
]
