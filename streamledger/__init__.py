"""
streamledger: continuous payment-streaming accounting engine
"""

__version__ = "0.1.0"
