"""
Lumo agent service - guarded conversation pipeline and daily digests.
"""

__version__ = "0.1.0"
