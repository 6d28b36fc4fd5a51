"""Console message templates.

These strings are written verbatim to the build console and are matched by
downstream log parsers, so the wording must not change.
"""

from __future__ import annotations

STAGE_PREBUILD = "prebuild"
STAGE_PERFORM = "perform step"

PUBLISHER_DISPLAY_NAME = "Flexible publish"

_CONDITION_TRUE = "Condition [{condition}] is met. Continue to run {stage} of [{publisher}]"
_CONDITION_FALSE = "Condition [{condition}] is not met, continue to next {stage}"


def condition_true(condition: str, stage: str, publisher: str) -> str:
    """Line logged when a condition holds and the wrapped publisher runs."""
    return _CONDITION_TRUE.format(condition=condition, stage=stage, publisher=publisher)


def condition_false(condition: str, stage: str, publisher: str) -> str:
    """Line logged when a condition fails and the wrapped publisher is skipped.

    ``publisher`` is accepted so both templates share a call shape; the
    skip message does not mention it.
    """
    return _CONDITION_FALSE.format(condition=condition, stage=stage, publisher=publisher)
