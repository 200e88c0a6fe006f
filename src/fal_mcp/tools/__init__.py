# SPDX-License-Identifier: MIT
"""Tool implementations for the fal.ai MCP server.

This package contains the operations behind each MCP tool, organized by API surface:
- models: catalog discovery (models, search, find, schema)
- generate: queue lifecycle (generate, status, result, cancel)
- billing: pricing, cost estimates, usage and analytics
- storage: CDN file upload

Tools are wired to MCP in ``fal_mcp.dispatch`` and ``fal_mcp.server``.
"""
