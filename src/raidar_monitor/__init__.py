"""
Raidar NAS monitor - ReadyNAS discovery and health polling over the Raidar UDP protocol
"""

__version__ = "1.0.0"
