"""MCP tools for winscout."""

from winscout.tools.gpreport import gpreport
from winscout.tools.lockouts import lockouts

__all__ = ["gpreport", "lockouts"]
