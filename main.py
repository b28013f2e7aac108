# =============================================================================
# main.py - Entry Point for the Perplexity Ask MCP Server
# =============================================================================
#
# HOW TO RUN:
#   PERPLEXITY_API_KEY=... uv run python main.py
#   (or the installed console script: perplexity-ask-mcp)
#
# WHAT HAPPENS:
#   1. Loads a .env file if present (real environment variables win)
#   2. Reads ServerSettings once: API key, proxy variables
#   3. Builds the CompletionAdapter and the FastMCP server
#   4. Serves MCP over stdin/stdout until the host closes the pipe
#
# EXIT CODES:
#   0  clean shutdown
#   1  missing PERPLEXITY_API_KEY, or the stdio transport failed
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

from core.completion import CompletionAdapter
from core.config import ConfigurationError, ServerSettings
from tools.mcp_server import build_server, configure_logging

logger = logging.getLogger("perplexity_mcp")


def main() -> int:
    """Start the server and block until it stops.  Returns the exit code."""
    configure_logging()
    load_dotenv()

    try:
        settings = ServerSettings.from_env()
    except ConfigurationError as exc:
        logger.error(f"Error: {exc}")
        return 1

    if settings.proxy.proxy_url:
        logger.info(f"Proxy configured: {settings.proxy.proxy_url}")

    server = build_server(CompletionAdapter(settings))

    logger.info("Perplexity MCP Server running on stdio with Ask, Research, and Reason tools")
    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception as exc:
        logger.error(f"Fatal error running server: {exc}")
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
