"""
Shared test fixtures and configuration.
"""

import io
import textwrap
from pathlib import Path

import pytest

from macprovision.adapters.mock import MockCommandRunner
from macprovision.core.prompt import Prompt
from macprovision.core.services.actions import ProvisionContext


@pytest.fixture(autouse=True)
def isolated_state(tmp_path: Path, monkeypatch) -> Path:
    """Keep the run ledger out of the real home directory."""
    state_dir = tmp_path / "state"
    monkeypatch.setenv("MACPROV_STATE_DIR", str(state_dir))
    return state_dir


def scripted_prompt(*answers: str) -> Prompt:
    """A Prompt fed from a fixed list of answer lines."""
    text = "".join(f"{a}\n" for a in answers)
    return Prompt(input_stream=io.StringIO(text), output_stream=io.StringIO(), color=False)


@pytest.fixture
def make_prompt():
    """Factory fixture: ``make_prompt("y", "n")`` answers two questions."""
    return scripted_prompt


@pytest.fixture
def mock_runner() -> MockCommandRunner:
    return MockCommandRunner()


@pytest.fixture
def ctx(mock_runner: MockCommandRunner, tmp_path: Path) -> ProvisionContext:
    """A provisioning context on a mock runner with a throwaway HOME."""
    home = tmp_path / "home"
    home.mkdir()
    return ProvisionContext(runner=mock_runner, prompt=scripted_prompt(), home=home)


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a provision.yml into tmp_path and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "provision.yml"
        path.write_text(textwrap.dedent(content))
        return path

    return _write
