"""
Face liveness challenge evaluation over per-frame facial metrics
"""
__version__ = "0.1.0"
