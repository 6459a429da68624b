"""
Vault Tasks MCP server entry point.

Startup sequence:
1. Read VAULT_ROOT, VAULT_NAME and EXCLUDE_DIRS from environment
2. Build the Obsidian task provider
3. Register all MCP tools
4. Start REST API server in background thread (if API_ENABLED)
5. Run MCP server (stdio transport)

Nothing is scanned at startup; every tool call reads the vault afresh.
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from vault_tasks.provider import ObsidianProvider
from vault_tasks.tools import register_task_tools

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
log = logging.getLogger(__name__)


def _parse_exclude_dirs(raw: str) -> set[str]:
    """Parse a comma-separated list of directory names to exclude."""
    return {part.strip() for part in raw.split(",") if part.strip()}


def _start_api_server(provider, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from vault_tasks.api.app import create_app

    app = create_app(provider)
    log.info("Starting REST API on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning")


def main() -> None:
    vault_root_env = os.environ.get("VAULT_ROOT", "")
    if not vault_root_env:
        log.error("VAULT_ROOT environment variable is not set")
        sys.exit(1)

    vault_root = Path(vault_root_env)
    if not vault_root.is_dir():
        log.error("VAULT_ROOT does not exist or is not a directory: %s", vault_root)
        sys.exit(1)

    vault_name = os.environ.get("VAULT_NAME", "") or vault_root.resolve().name

    exclude_raw = os.environ.get("EXCLUDE_DIRS", ".git,.obsidian,node_modules,.trash")
    exclude_dirs = _parse_exclude_dirs(exclude_raw)

    log.info("Vault root: %s", vault_root)
    log.info("Excluded dirs: %s", exclude_dirs)

    provider = ObsidianProvider(vault_name, vault_root, exclude_dirs)
    if not provider.capabilities().create_task:
        log.info("Obsidian Local REST API not configured; task creation is disabled")

    # Start REST API in a daemon thread
    api_enabled = os.environ.get("API_ENABLED", "true").lower() in ("true", "1", "yes")
    if api_enabled:
        api_port = int(os.environ.get("API_PORT", "9400"))
        api_thread = threading.Thread(
            target=_start_api_server, args=(provider, api_port), daemon=True
        )
        api_thread.start()

    # Create MCP server and register tools
    mcp = FastMCP("vault-tasks")
    register_task_tools(mcp, provider)

    log.info("Starting vault-tasks server")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
