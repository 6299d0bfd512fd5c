"""Error messages used by the broker."""


class ErrorMessages:
    """Error messages returned to submitters and consumers."""

    REQUEST_NOT_FOUND = "Request not found"
    SUBMITTER_TIMED_OUT = "Submitter may have timed out"
    SUBMISSION_TIMEOUT = "No response received before timeout"
    BROKER_CLOSED = "Broker is shutting down"
    NOT_FOUND = "Not found"
    INVALID_JSON = "Invalid JSON"
    INVALID_PARAMS = "Invalid params: expected an object"

    @staticmethod
    def format_unknown_tool(name: str) -> str:
        """Format unknown tool message."""
        return f"Unknown tool: {name}"

    @staticmethod
    def format_unknown_method(method: str) -> str:
        """Format unknown RPC method message."""
        return f"Unknown method: {method}"

    @staticmethod
    def format_missing_arguments(missing) -> str:
        """Format missing tool argument message."""
        return f"Missing required arguments: {', '.join(missing)}"
