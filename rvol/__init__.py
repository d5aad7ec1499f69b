"""
rvol: realized volatility oracle for AMM pools.
"""

__version__ = "1.3.0"
