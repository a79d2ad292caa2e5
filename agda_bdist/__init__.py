"""
agda-bdist — build, package, and publish binary distributions of Agda.
"""

__version__ = "0.1.0"
