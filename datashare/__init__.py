"""
Permissioned data-sharing ledger contract.
"""

from .core.config import VERSION

__version__ = VERSION
