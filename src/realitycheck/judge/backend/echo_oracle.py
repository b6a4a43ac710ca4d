"""Local stand-in for the judge CLI used by subprocess-level tests.

Accepts the same flags as the real judge command and prints a verdict
envelope chosen by `REALITYCHECK_ECHO_ORACLE_MODE`:

- `pass` / `fail`: a `{"result": {...}}` envelope with a passing or failing verdict,
- `content`: the failing verdict as JSON text inside a content block,
- `bare`: the failing verdict object with no envelope,
- `garbage`: non-JSON output,
- `invalid`: JSON that violates the verdict schema,
- `exit`: writes to stderr and exits with code 3,
- `sleep`: sleeps longer than any sane timeout.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time

PASSING_VERDICT: dict[str, object] = {
    "pass": True,
    "reason": "All directives are complete.",
    "missingItems": [],
    "questionsForUser": [],
    "forwardProgress": True,
    "suggestedNextSteps": [],
}
FAILING_VERDICT: dict[str, object] = {
    "pass": False,
    "reason": "Tests were not run.",
    "missingItems": ["run the test suite", "update the changelog"],
    "questionsForUser": [],
    "forwardProgress": True,
    "convergenceEstimate": 60,
    "suggestedNextSteps": ["run pytest"],
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("-p", action="store_true")
    parser.add_argument("--model", default="")
    parser.add_argument("--json-schema", default="")
    parser.add_argument("prompt", nargs="?", default="")
    parser.parse_known_args(argv)

    mode = os.getenv("REALITYCHECK_ECHO_ORACLE_MODE", "pass")
    if mode == "sleep":
        time.sleep(float(os.getenv("REALITYCHECK_ECHO_ORACLE_SLEEP_SECONDS", "60")))
        return 0
    if mode == "exit":
        sys.stderr.write("echo oracle: simulated crash\n")
        return 3
    if mode == "garbage":
        sys.stdout.write("this is not json\n")
        return 0
    if mode == "invalid":
        sys.stdout.write(json.dumps({"result": {"pass": "yes"}}))
        return 0
    if mode == "content":
        envelope: object = {
            "content": [
                {"type": "tool_use", "name": "noop"},
                {"type": "text", "text": json.dumps(FAILING_VERDICT)},
            ],
        }
    elif mode == "bare":
        envelope = FAILING_VERDICT
    elif mode == "fail":
        envelope = {"type": "result", "result": FAILING_VERDICT}
    else:
        envelope = {"type": "result", "result": PASSING_VERDICT}
    sys.stdout.write(json.dumps(envelope))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
