"""
Event extraction and multi-source calendar synchronization.
"""

__version__ = "0.1.0"
