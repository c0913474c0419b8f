"""Oracle port: prompts, result schemas and the registry-backed oracle."""
