"""Unit tests for the rsync file adapter."""

from unittest.mock import Mock

import pytest

from wpsync.config import Environment
from wpsync.exceptions import LocalPathMissingError, SyncConfigError, TransferError
from wpsync.oplog import OperationLog
from wpsync.sync.files import RSYNC_OPTIONS, FileSyncAdapter
from wpsync.sync.modes import Direction


@pytest.fixture
def staging(sync_config):
    return sync_config.environments["staging"]


@pytest.fixture
def themes_dir(tmp_path):
    path = tmp_path / "wp-content" / "themes"
    path.mkdir(parents=True)
    return path


class TestBuildCommand:
    """Tests for FileSyncAdapter.build_command."""

    def test_push(self, make_runner, tmp_path, staging, themes_dir):
        adapter = FileSyncAdapter(make_runner(), tmp_path)
        command = adapter.build_command(
            Direction.PUSH, staging, themes_dir, "/var/www/staging/wp-content/themes"
        )

        assert command == [
            "rsync",
            *RSYNC_OPTIONS,
            "--exclude=.DS_Store",
            "--delete",
            f"{themes_dir}/",
            "staging-host:/var/www/staging/wp-content/themes/",
        ]

    def test_pull_reverses_endpoints(self, make_runner, tmp_path, staging, themes_dir):
        adapter = FileSyncAdapter(make_runner(), tmp_path)
        command = adapter.build_command(
            Direction.PULL, staging, themes_dir, "/var/www/staging/wp-content/themes/"
        )

        assert command[-2:] == [
            "staging-host:/var/www/staging/wp-content/themes/",
            f"{themes_dir}/",
        ]

    def test_remote_without_ssh_alias(self, make_runner, tmp_path, themes_dir):
        adapter = FileSyncAdapter(make_runner(), tmp_path)

        with pytest.raises(SyncConfigError, match="needs sshAlias"):
            adapter.build_command(
                Direction.PUSH, Environment(name="qa", wp_root="/srv/qa"), themes_dir, "/srv/qa"
            )

    def test_excludes_are_merged(self, make_runner, tmp_path, staging, themes_dir):
        adapter = FileSyncAdapter(make_runner(), tmp_path)
        command = adapter.build_command(
            Direction.PUSH, staging, themes_dir, "/srv", extra_excludes=["node_modules"]
        )

        excludes = [arg for arg in command if arg.startswith("--exclude=")]
        assert excludes == ["--exclude=.DS_Store", "--exclude=node_modules"]

    def test_no_delete(self, make_runner, tmp_path, staging, themes_dir):
        adapter = FileSyncAdapter(make_runner(), tmp_path)
        command = adapter.build_command(
            Direction.PUSH, staging, themes_dir, "/srv", delete=False
        )
        assert "--delete" not in command


class TestSyncFiles:
    """Tests for FileSyncAdapter.sync_files."""

    def test_push_runs_rsync(self, make_runner, tmp_path, staging, themes_dir):
        runner = make_runner()
        adapter = FileSyncAdapter(runner, tmp_path)

        assert adapter.sync_files(
            Direction.PUSH, staging, "wp-content/themes", "/var/www/staging/wp-content/themes/"
        )
        assert len(runner.executed) == 1
        assert runner.executed[0].command[0] == "rsync"

    def test_push_missing_local_dir(self, make_runner, tmp_path, staging):
        runner = make_runner()
        adapter = FileSyncAdapter(runner, tmp_path)

        with pytest.raises(LocalPathMissingError, match="Local path not found"):
            adapter.sync_files(Direction.PUSH, staging, "wp-content/plugins", "/srv/")
        assert runner.history == []

    def test_pull_creates_local_dir(self, make_runner, tmp_path, staging):
        adapter = FileSyncAdapter(make_runner(), tmp_path)

        adapter.sync_files(Direction.PULL, staging, "wp-content/languages", "/srv/")
        assert (tmp_path / "wp-content" / "languages").is_dir()

    def test_dry_run_pull_creates_nothing(self, make_runner, tmp_path, staging):
        runner = make_runner(dry_run=True)
        adapter = FileSyncAdapter(runner, tmp_path)

        adapter.sync_files(Direction.PULL, staging, "wp-content/languages", "/srv/")
        assert not (tmp_path / "wp-content").exists()
        assert len(runner.history) == 1
        assert runner.executed == []

    def test_optional_partial_transfer_is_skipped(self, make_runner, tmp_path, staging):
        output = Mock()
        runner = make_runner(fail_when=lambda invocation: True, fail_code=23)
        adapter = FileSyncAdapter(runner, tmp_path, output=output)

        result = adapter.sync_files(
            Direction.PULL, staging, "wp-content/mu-plugins", "/srv/", optional=True
        )

        assert result is False
        output.warning.assert_called_once()
        assert "wp-content/mu-plugins" in output.warning.call_args[0][0]

    def test_failure_raises_transfer_error(self, make_runner, tmp_path, staging, themes_dir):
        runner = make_runner(fail_when=lambda invocation: True)
        adapter = FileSyncAdapter(runner, tmp_path)

        with pytest.raises(TransferError, match="wp-content/themes"):
            adapter.sync_files(Direction.PUSH, staging, "wp-content/themes", "/srv/")

    def test_required_target_does_not_tolerate_exit_23(
        self, make_runner, tmp_path, staging, themes_dir
    ):
        runner = make_runner(fail_when=lambda invocation: True, fail_code=23)
        adapter = FileSyncAdapter(runner, tmp_path)

        with pytest.raises(TransferError, match="code 23"):
            adapter.sync_files(Direction.PUSH, staging, "wp-content/themes", "/srv/")

    def test_success_is_logged(self, make_runner, tmp_path, staging, themes_dir):
        oplog = Mock(spec=OperationLog)
        adapter = FileSyncAdapter(make_runner(), tmp_path, oplog=oplog)

        adapter.sync_files(Direction.PUSH, staging, "wp-content/themes", "/srv/")
        oplog.record.assert_called_once_with(
            "File sync (push) complete for wp-content/themes on staging."
        )

    def test_dry_run_is_not_logged(self, make_runner, tmp_path, staging, themes_dir):
        oplog = Mock(spec=OperationLog)
        adapter = FileSyncAdapter(make_runner(dry_run=True), tmp_path, oplog=oplog)

        adapter.sync_files(Direction.PUSH, staging, "wp-content/themes", "/srv/")
        oplog.record.assert_not_called()
