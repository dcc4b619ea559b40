from .base import RateSource
from .cnb import CNBRateSource

__all__ = ['RateSource', 'CNBRateSource']
