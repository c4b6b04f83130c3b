"""
DLMM bonding curve engine: price grid, allocation curves, fees and verification.
"""
from . import curves
from . import exceptions
from . import fees
from . import schedule
from . import utils
from . import verifier

__all__ = ['curves', 'exceptions', 'fees', 'schedule', 'utils', 'verifier']
