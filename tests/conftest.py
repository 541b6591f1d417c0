# tests/conftest.py
"""Shared test fixtures and Hypothesis configuration."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from tests.helpers.records import ANN, AT_RISK_HEADER, BO, make_record

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Remove the stderr handler configure_logging() installs on the root logger.

    Left in place it would keep writing to a capture stream that is closed
    once the test ends.
    """
    root = logging.getLogger()
    before = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
    root.setLevel(level)


# =============================================================================
# Record fixtures
# =============================================================================


@pytest.fixture
def two_records() -> tuple[tuple[str, ...], ...]:
    """Ann has every field; Bo has only a name."""
    return (ANN, BO)


@pytest.fixture
def many_records() -> tuple[tuple[str, ...], ...]:
    """Fifty records, every one with a name, every odd one with an SSN."""
    return tuple(
        make_record(
            str(i),
            first_name=f"First{i}",
            last_name=f"Last{i}",
            ssn=f"000-00-{i:04d}" if i % 2 else "",
        )
        for i in range(50)
    )


@pytest.fixture
def input_file(tmp_path: Path) -> Path:
    """Pipe-delimited at-risk input with a header row and two records."""
    path = tmp_path / "input.psv"
    lines = ["|".join(AT_RISK_HEADER), "|".join(ANN), "|".join(BO)]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
