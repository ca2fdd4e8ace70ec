"""
Seitrace MCP server package.

This package exposes the Seitrace insights, gateway and Sei RPC/LCD surfaces
to LLM agents through a small resource/action interface. See DESIGN.md for
full details.
"""

__all__ = ["config", "dispatcher", "mcp", "server", "tools"]
