"""Error formatting utilities for consistent error messages.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Use present tense: 'must be', 'is required'
- Remediation is printed as numbered steps the user can follow in order
"""


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("target 'foo' not found")
        "Error: target 'foo' not found"
    """
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """Format a field validation error.

    Examples:
        >>> format_field_error("Target 'jq'", "display_name", "must be a non-empty string")
        "Target 'jq' field 'display_name' must be a non-empty string"
    """
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a hint.

    Examples:
        >>> format_suggestion("target 'foo' not found", "run 'hostinstall list --all' to see known targets")
        "Error: target 'foo' not found. Hint: run 'hostinstall list --all' to see known targets"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


def format_remediation(steps: list[str], indent: str = "  ") -> str:
    """Render remediation steps as a numbered list.

    Examples:
        >>> print(format_remediation(["brew install mas", "mas install 123"]))
          1. brew install mas
          2. mas install 123
    """
    return "\n".join(f"{indent}{i}. {step}" for i, step in enumerate(steps, 1))


__all__ = [
    "format_error",
    "format_field_error",
    "format_remediation",
    "format_suggestion",
]
