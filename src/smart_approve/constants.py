"""Shared constants for smart-approve."""

# Tool name the host uses for shell execution
SHELL_TOOL_NAME = "Bash"

HOOK_EVENT_NAME = "PreToolUse"

# Content display truncation limits
CONTENT_PREVIEW_LENGTH = 200
CONTEXT_TURN_MAX_LENGTH = 500


def truncate(text: str, max_length: int = CONTENT_PREVIEW_LENGTH) -> str:
    """Truncate text with ellipsis if it exceeds max_length."""
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text
