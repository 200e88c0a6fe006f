# SPDX-License-Identifier: MIT
"""MCP server for the fal.ai generative media platform."""

__version__ = "2.1.1"
