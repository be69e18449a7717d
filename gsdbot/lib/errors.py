"""
Comment formatters for command outcomes.

Every fatal path ends in an error comment on the originating issue, so a
human never needs log access to see what failed.
"""

import traceback

MAX_TRACE_CHARS = 6000


def _format_trace(error: BaseException) -> str:
    trace = "".join(traceback.format_exception(type(error), error, error.__traceback__)).strip()
    if not trace:
        return "No stack trace available"
    if len(trace) > MAX_TRACE_CHARS:
        # Keep the tail, it names the failing frame
        trace = "...\n" + trace[-MAX_TRACE_CHARS:]
    return trace


def format_error_comment(
    error: BaseException,
    run_url: str | None = None,
    operation: str | None = None,
) -> str:
    """Format an exception as a markdown issue comment."""
    summary = str(error) or type(error).__name__
    during = f" during {operation}" if operation else " during command execution"
    logs = f"[View Logs]({run_url})" if run_url else "(not available outside CI)"

    return f"""## Error: {summary}

Something went wrong{during}.

**Workflow Run:** {logs}

### Next Steps

1. Check the workflow run logs for detailed error information
2. Review the command syntax and arguments
3. Ensure all required permissions are configured
4. Verify GitHub token has appropriate scopes
5. If the issue persists, please report the error with the workflow run ID

<details>
<summary><strong>Stack Trace</strong></summary>

```
{_format_trace(error)}
```

</details>
"""
