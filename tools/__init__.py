# =============================================================================
# tools/__init__.py
# =============================================================================
# The MCP layer.  mcp_server.py registers one FastMCP tool per descriptor in
# core/registry.py and converts CompletionAdapter outcomes into MCP results.
# It holds no logic of its own beyond that translation and logging.
# =============================================================================
