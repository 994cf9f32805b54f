"""
supervision_core - offline-first malaria supportive supervision collector.
"""

__version__ = "1.0.0"
