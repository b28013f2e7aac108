# =============================================================================
# core/__init__.py
# =============================================================================
# Everything the server does, independent of MCP:
#   models.py      request/response value types and call outcomes
#   config.py      ServerSettings and ProxyConfig, read once at startup
#   proxy.py       per-call proxy / NO_PROXY decision
#   registry.py    the three Perplexity tool descriptors
#   completion.py  CompletionAdapter: validate, POST, format, map errors
#
# Nothing in this package imports FastMCP.  The tools/ layer wires the
# adapter into an MCP server.
# =============================================================================
