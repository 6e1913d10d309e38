"""Shared fixtures for wpsync tests."""

import json
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence, Union
from unittest.mock import Mock

import pytest

from wpsync.config import SyncConfig
from wpsync.exceptions import NonZeroExitError, PipeSinkError
from wpsync.output import OutputFormatter
from wpsync.process import Invocation, ProcessRunner

FIXED_NOW = datetime(2025, 1, 15, 10, 30, 5)


def base_config_data() -> dict:
    return {
        "wpBin": "wp",
        "multisite": False,
        "environments": {
            "local": {"domain": "http://dev.local"},
            "staging": {
                "sshAlias": "staging-host",
                "wpRoot": "/var/www/staging",
                "domain": "https://staging.example.com/",
                "exclude": [".DS_Store"],
            },
            "production": {
                "sshAlias": "prod-host",
                "wpRoot": "/var/www/prod",
                "domain": "https://www.example.com",
                "syncOptions": {"uploads": {"pull": False}},
            },
        },
    }


class RecordingRunner(ProcessRunner):
    """ProcessRunner that records calls instead of spawning processes.

    Live dumps are written as small placeholder files; ``fail_when``
    selects invocations that should fail like a non-zero exit.
    """

    def __init__(
        self,
        dry_run: bool = False,
        fail_when: Optional[Callable[[Invocation], bool]] = None,
        fail_code: int = 1,
        output: Optional[OutputFormatter] = None,
    ):
        super().__init__(dry_run=dry_run, output=output or OutputFormatter(quiet=True))
        self.fail_when = fail_when or (lambda invocation: False)
        self.fail_code = fail_code
        self.executed: list[Invocation] = []

    def _execute(self, invocation: Invocation) -> None:
        self.executed.append(invocation)
        if self.fail_when(invocation):
            raise (
                PipeSinkError(invocation.sink, self.fail_code)
                if invocation.sink
                else NonZeroExitError(invocation.command, self.fail_code)
            )

    def run(self, command: Sequence[str]) -> None:
        invocation = Invocation("run", tuple(command))
        if self._announce(invocation):
            return
        self._execute(invocation)

    def run_to_file(self, command: Sequence[str], path: Union[str, Path]) -> Path:
        path = Path(path)
        invocation = Invocation("run_to_file", tuple(command), output=path)
        if self._announce(invocation):
            return path
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "xb") as f:
            f.write(b"-- dump\n")
        self._execute(invocation)
        return path

    def pipe(self, source: Sequence[str], sink: Sequence[str]) -> None:
        invocation = Invocation("pipe", tuple(source), sink=tuple(sink))
        if self._announce(invocation):
            return
        self._execute(invocation)


@pytest.fixture
def make_runner() -> Callable[..., RecordingRunner]:
    return RecordingRunner


@pytest.fixture
def config_data() -> dict:
    return base_config_data()


@pytest.fixture
def sync_config(tmp_path, config_data) -> SyncConfig:
    return SyncConfig.from_dict(config_data, base_dir=tmp_path)


@pytest.fixture
def config_file(tmp_path, config_data) -> Path:
    path = tmp_path / "sync.config.json"
    path.write_text(json.dumps(config_data), encoding="utf-8")
    return path


@pytest.fixture
def quiet_output():
    output = Mock(spec=OutputFormatter)
    output.quiet = True
    return output


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW
