"""memlex MCP Tool Schemas -- 4 tools for memory management."""

TOOL_SCHEMAS = [
    {
        "name": "memory_store",
        "description": (
            "Store important information that should persist across sessions.\n"
            "Call this when you discover or establish:\n"
            "- Architectural decisions and their rationale\n"
            "- Bug root causes and their fixes\n"
            "- User preferences (coding style, tools, naming conventions)\n"
            "- Project structure insights and key file locations\n"
            "- Solutions to problems that required significant effort\n"
            "Do NOT store trivial or ephemeral information."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": "The information to remember. Be specific and include context.",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Categorical tags for this memory (e.g. ['auth', 'backend', 'bug-fix'])",
                },
                "source": {
                    "type": "string",
                    "description": "Origin identifier (e.g. project name, file path). Defaults to the current project.",
                },
            },
            "required": ["content"],
        },
    },
    {
        "name": "memory_search",
        "description": (
            "Search your persistent memory for relevant context.\n"
            "ALWAYS call this tool at the start of a new conversation and whenever the user\n"
            "asks about something that may have been discussed in a previous session.\n"
            "This gives you knowledge that persists beyond your context window."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Natural language search query"},
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Optional tags; memories sharing them rank higher",
                },
                "limit": {"type": "integer", "description": "Max results to return (default: 5)", "default": 5},
            },
            "required": ["query"],
        },
    },
    {
        "name": "memory_delete",
        "description": (
            "Delete a specific memory by its ID. Use when the user asks to forget "
            "something or when information is outdated."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {"id": {"type": "integer", "description": "The memory ID to delete"}},
            "required": ["id"],
        },
    },
    {
        "name": "memory_list",
        "description": "List stored memories, optionally filtered by tags. Use when the user wants to see what you remember.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tags": {"type": "array", "items": {"type": "string"}, "description": "Optional tag filter"},
                "limit": {"type": "integer", "description": "Max results (default: 20)", "default": 20},
                "offset": {"type": "integer", "description": "Pagination offset (default: 0)", "default": 0},
            },
        },
    },
]
