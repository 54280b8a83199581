"""memlex MCP server -- tool schemas, handlers and the stdio entry point."""
