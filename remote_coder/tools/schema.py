"""Tool definitions advertised to the model."""

READ_FILE = "read_file"
STR_REPLACE = "str_replace"
CREATE_FILE = "create_file"
SEARCH_FILES = "search_files"

TOOL_NAMES = (READ_FILE, STR_REPLACE, CREATE_FILE, SEARCH_FILES)

TOOL_SCHEMA: list[dict] = [
    {
        "name": READ_FILE,
        "description": "Read the contents of a file from the repository",
        "input_schema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "The path to the file relative to repo root",
                },
            },
            "required": ["path"],
        },
    },
    {
        "name": STR_REPLACE,
        "description": (
            "Replace a unique string in a file with another string. "
            "The old_str must appear exactly once in the file."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "The path to the file to edit",
                },
                "old_str": {
                    "type": "string",
                    "description": "The exact string to find and replace (must be unique in the file)",
                },
                "new_str": {
                    "type": "string",
                    "description": "The string to replace it with",
                },
            },
            "required": ["path", "old_str", "new_str"],
        },
    },
    {
        "name": CREATE_FILE,
        "description": "Create a new file with the given content",
        "input_schema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "The path where the file should be created",
                },
                "content": {
                    "type": "string",
                    "description": "The content of the new file",
                },
            },
            "required": ["path", "content"],
        },
    },
    {
        "name": SEARCH_FILES,
        "description": "Search for files in the repository that contain a specific term",
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search term to look for",
                },
            },
            "required": ["query"],
        },
    },
]
