from __future__ import annotations

import allure

from realitycheck.judge.failure_classifier import (
    JUDGE_FAILURE_CLASSIFIER_VERSION,
    JudgeFailure,
    JudgeFailureClass,
    classify_exit_failure,
)

pytestmark = [
    allure.epic("Judgment Gateway"),
    allure.feature("Failure Classification"),
]


def test_classifier_version_is_stable() -> None:
    assert JUDGE_FAILURE_CLASSIFIER_VERSION == 1


def test_classifier_maps_billing_before_auth() -> None:
    failure = classify_exit_failure(
        exit_code=1,
        stdout="",
        stderr="Credit balance is too low. Unauthorized.",
    )

    assert failure.failure_class is JudgeFailureClass.BILLING_OR_QUOTA
    assert failure.matched_pattern == "credit balance"


def test_classifier_maps_login_prompt_to_access_or_auth() -> None:
    failure = classify_exit_failure(exit_code=1, stdout="", stderr="Please run /login")

    assert failure.failure_class is JudgeFailureClass.ACCESS_OR_AUTH


def test_classifier_reads_stdout_when_stderr_is_empty() -> None:
    failure = classify_exit_failure(
        exit_code=2,
        stdout='{"error": "model not found: claude-x"}',
        stderr="",
    )

    assert failure.failure_class is JudgeFailureClass.MODEL_NOT_AVAILABLE
    assert failure.message.startswith("Judge process exited with code 2: ")


def test_classifier_falls_back_to_nonzero_exit() -> None:
    failure = classify_exit_failure(exit_code=3, stdout="", stderr="segfault\n")

    assert failure.failure_class is JudgeFailureClass.NONZERO_EXIT
    assert failure.matched_pattern is None
    assert failure.message == "Judge process exited with code 3: segfault"


def test_long_output_is_previewed() -> None:
    failure = classify_exit_failure(exit_code=1, stdout="", stderr="e" * 2_000)

    assert failure.message.endswith("...")
    assert len(failure.message) < 600


def test_log_details_include_classifier_version() -> None:
    details = JudgeFailure(JudgeFailureClass.TIMEOUT, "slow").to_log_details()

    assert details["classifier_version"] == 1
    assert details["failure_class"] == "timeout"
