"""
API module for NAS status monitoring
"""

from .main_api import RaidarAPI
from .status_routes import create_status_routes, summarize_report
from .system_routes import create_system_routes

__all__ = ['RaidarAPI', 'create_status_routes', 'summarize_report', 'create_system_routes']
