"""
Process scheduling and mutual-exclusion simulator.
"""

__version__ = "0.1.0"
