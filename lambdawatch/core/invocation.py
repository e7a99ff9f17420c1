"""Lambda invocation context helpers.

The host platform passes a context object whose attributes we only read
by duck typing, so handlers invoked locally or by tests with a plain
object (or None) still work.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any


def remaining_time_ms(context: Any) -> int | None:
    """Milliseconds left before the invocation deadline, if the context knows."""
    getter = getattr(context, "get_remaining_time_in_millis", None)
    if not callable(getter):
        return None
    try:
        remaining = getter()
    except Exception:
        return None
    if isinstance(remaining, bool) or not isinstance(remaining, (int, float)):
        return None
    return int(remaining)


def invocation_tags(context: Any) -> dict[str, str]:
    """Extract identifying tags for one invocation from a Lambda context."""
    tags = {}
    for attribute, tag in (
        ("function_name", "function_name"),
        ("function_version", "function_version"),
        ("aws_request_id", "request_id"),
    ):
        try:
            value = getattr(context, attribute, None)
        except Exception:
            continue
        if value:
            tags[tag] = str(value)
    return tags


@dataclass
class LocalInvocationContext:
    """Stand-in for the Lambda context object when invoking handlers locally.

    Mirrors the attributes the Lambda Python runtime provides, with a
    deadline computed from ``timeout_ms`` at construction.
    """

    function_name: str = "local-handler"
    function_version: str = "$LATEST"
    memory_limit_in_mb: int = 128
    timeout_ms: int = 30_000
    aws_request_id: str = field(default_factory=lambda: f"local-{uuid.uuid4()}")
    invoked_function_arn: str = ""
    log_group_name: str = ""
    log_stream_name: str = ""
    _deadline: float = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._deadline = time.monotonic() + self.timeout_ms / 1000.0
        if not self.invoked_function_arn:
            self.invoked_function_arn = (
                f"arn:aws:lambda:us-east-1:000000000000:function:{self.function_name}"
            )
        if not self.log_group_name:
            self.log_group_name = f"/aws/lambda/{self.function_name}"
        if not self.log_stream_name:
            self.log_stream_name = f"local/[{self.function_version}]{self.aws_request_id}"

    def get_remaining_time_in_millis(self) -> int:
        return max(int((self._deadline - time.monotonic()) * 1000), 0)
