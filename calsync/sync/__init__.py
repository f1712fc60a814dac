"""
Calendar sync engine: email event extraction and multi-source merging.
"""
