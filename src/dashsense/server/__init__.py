"""
DashSense HTTP API.

Usage:
    uvicorn dashsense.server.app:create_app --factory
"""

from dashsense.server.app import create_app
from dashsense.server.settings import ServerSettings, get_server_settings

__all__ = ["create_app", "ServerSettings", "get_server_settings"]
