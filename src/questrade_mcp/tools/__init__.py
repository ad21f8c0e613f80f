"""Tool schemas and handlers for Questrade MCP Server."""

from ..errors import InvalidParamsError


def require_args(args: dict, *names: str) -> None:
    """
    Check that every named argument was supplied.

    Args:
        args: Tool arguments
        names: Required argument names

    Raises:
        InvalidParamsError: Naming the missing arguments
    """
    missing = [name for name in names if args.get(name) in (None, "")]
    if not missing:
        return
    if len(missing) == 1:
        raise InvalidParamsError(f"{missing[0]} is required")
    raise InvalidParamsError(f"{', '.join(missing[:-1])} and {missing[-1]} are required")


def to_int(value, name: str) -> int:
    """Convert a numeric argument (JSON numbers may arrive as floats or strings)."""
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidParamsError(f"{name} must be a number") from e
