import os

import pytest

from statscore.core.clock import FixedClock, Timestamp, set_clock
from statscore.core.config import reset_settings
from statscore.core.context import reset_context
from statscore.core.hashing import set_label_hasher


# List of environment variables that may be modified by tests
_ENV_VARS_TO_ISOLATE = [
    "STATSCORE_LOG_LEVEL",
    "STATSCORE_LOG_JSON",
    "STATSCORE_CLOCK_RECALIBRATION_INTERVAL_SECONDS",
    "STATSCORE_TAG_MAX_LENGTH",
    "STATSCORE_LABEL_HASH_MODE",
    "STATSCORE_PROMETHEUS_PREFIX",
]


@pytest.fixture(autouse=True)
def env_isolation():
    """Isolate environment variables between tests."""
    backup = {k: os.environ.get(k) for k in _ENV_VARS_TO_ISOLATE}
    for k in _ENV_VARS_TO_ISOLATE:
        os.environ.pop(k, None)
    reset_settings()
    try:
        yield
    finally:
        for k, v in backup.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v
        reset_settings()


@pytest.fixture(autouse=True)
def global_state_isolation():
    """Reset the process clock, label hasher and telemetry context between tests."""
    set_clock(FixedClock())
    set_label_hasher(None)
    reset_context()
    try:
        yield
    finally:
        reset_context()
        set_label_hasher(None)
        set_clock(None)


@pytest.fixture
def fixed_clock():
    """A FixedClock at 1000s installed as the process clock."""
    clock = FixedClock(Timestamp(seconds=1_000, nanos=0))
    set_clock(clock)
    return clock
