"""Turn a terminal task status from the sandbox into one output string."""

import orjson
from typing import Any, Mapping

from ..errors import ProcessFailure, SpawnFailure

NO_OUTPUT = "No output"
TERMINAL_STATUSES = frozenset({"completed", "failed"})


def is_terminal(status: Mapping[str, Any]) -> bool:
    return status.get("status") in TERMINAL_STATUSES


def derive_output(status: Mapping[str, Any]) -> str:
    """Pick the most specific text in a terminal status.

    Precedence: ``error`` (raised) > string result > ``result.raw`` >
    ``result.result`` > indented JSON of the whole result. Captured stderr is
    appended. A failed status raises ``ProcessFailure`` carrying that output.
    """
    if status.get("error"):
        raise SpawnFailure(status["error"])

    output = NO_OUTPUT
    result = status.get("result")
    if result:
        if isinstance(result, str):
            output = result
        elif isinstance(result, Mapping) and result.get("raw"):
            output = result["raw"]
        elif isinstance(result, Mapping) and result.get("result"):
            output = str(result["result"])
        else:
            output = orjson.dumps(result, option=orjson.OPT_INDENT_2).decode()

    if status.get("stderr"):
        output += f"\n\nStderr: {status['stderr']}"

    if status.get("status") == "failed":
        raise ProcessFailure(status.get("exitCode"), output)
    return output
