"""
Services module orchestrating discovery, polling and the local API
"""

from .monitor_server import MonitorServer

__all__ = ['MonitorServer']
