"""
Relay Applications Package.

Contains:
- tool_api: FastAPI application exposing the tool engine
"""

__version__ = "0.1.0"
