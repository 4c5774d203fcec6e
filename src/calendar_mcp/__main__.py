"""Allow ``python -m calendar_mcp``."""

from calendar_mcp.server import main

main()
