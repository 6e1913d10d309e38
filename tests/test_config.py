"""Unit tests for configuration loading."""

import dataclasses
import json

import pytest

from wpsync.config import Environment, SyncConfig, load_config
from wpsync.exceptions import SyncConfigError


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_from_file(self, config_file, tmp_path):
        config = load_config(config_file)

        assert set(config.environments) == {"local", "staging", "production"}
        assert config.base_dir == tmp_path.resolve()
        assert config.backup_root == tmp_path.resolve() / "sql"
        assert config.log_path == tmp_path.resolve() / "sync.log"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SyncConfigError, match="not found"):
            load_config(tmp_path / "sync.config.json")

    def test_default_path_is_cwd(self, tmp_path, monkeypatch, config_file):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert "staging" in config.environments

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "sync.config.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(SyncConfigError, match="Invalid JSON"):
            load_config(path)

    def test_missing_environments(self, tmp_path):
        path = tmp_path / "sync.config.json"
        path.write_text(json.dumps({"wpBin": "wp"}), encoding="utf-8")

        with pytest.raises(SyncConfigError, match="environments"):
            load_config(path)

    def test_custom_backup_dir_and_log(self, tmp_path, config_data):
        config_data["backupDir"] = "dumps"
        config_data["logFile"] = "logs/wpsync.log"
        config = SyncConfig.from_dict(config_data, base_dir=tmp_path)

        assert config.backup_root == tmp_path / "dumps"
        assert config.log_path == tmp_path / "logs" / "wpsync.log"


class TestEnvironment:
    """Tests for Environment class."""

    def test_from_dict(self):
        env = Environment.from_dict(
            "staging",
            {
                "sshAlias": "staging-host",
                "wpRoot": "/var/www/staging",
                "domain": "https://staging.example.com",
                "wpBin": "php wp-cli.phar",
                "exclude": ["*.log"],
                "syncOptions": {"uploads": {"push": False}},
            },
        )

        assert env.name == "staging"
        assert env.ssh_alias == "staging-host"
        assert env.wp_root == "/var/www/staging"
        assert env.exclude == ("*.log",)
        assert env.is_local is False

    def test_remote_requires_connection_fields(self):
        with pytest.raises(SyncConfigError, match="sshAlias, wpRoot"):
            Environment.from_dict("staging", {"domain": "https://staging.example.com"})

    def test_local_needs_no_connection_fields(self):
        env = Environment.from_dict("local", {"domain": "http://dev.local"})
        assert env.is_local
        assert env.ssh_alias is None

    def test_invalid_exclude(self):
        with pytest.raises(SyncConfigError, match="exclude"):
            Environment.from_dict("local", {"exclude": "*.log"})

    def test_invalid_sync_options(self):
        with pytest.raises(SyncConfigError, match="syncOptions"):
            Environment.from_dict("local", {"syncOptions": {"uploads": True}})

    def test_is_allowed_defaults_to_true(self):
        env = Environment.from_dict(
            "local", {"syncOptions": {"uploads": {"pull": False}}}
        )

        assert env.is_allowed("uploads", "push") is True
        assert env.is_allowed("uploads", "pull") is False
        assert env.is_allowed("themes", "pull") is True

    def test_sync_options_accept_target_aliases(self):
        env = Environment.from_dict(
            "local",
            {"syncOptions": {"muplugins": {"push": False}, "db": {"pull": False}}},
        )

        assert set(env.sync_options) == {"mu-plugins", "database"}
        assert env.is_allowed("mu-plugins", "push") is False
        assert env.is_allowed("mu-plugins", "pull") is True
        assert env.is_allowed("database", "pull") is False

    def test_sync_options_alias_and_name_merge(self):
        env = Environment.from_dict(
            "local",
            {
                "syncOptions": {
                    "mu-plugins": {"pull": False},
                    "muplugins": {"push": False},
                }
            },
        )

        assert dict(env.sync_options["mu-plugins"]) == {"pull": False, "push": False}

    def test_sync_options_unknown_target(self):
        with pytest.raises(SyncConfigError, match='unknown target "upload"'):
            Environment.from_dict("local", {"syncOptions": {"upload": {"push": False}}})

    def test_sync_options_unknown_direction(self):
        with pytest.raises(SyncConfigError, match="unknown direction"):
            Environment.from_dict(
                "local", {"syncOptions": {"uploads": {"upload": False}}}
            )

    def test_require_remote(self):
        env = Environment(name="qa", ssh_alias="qa-host", wp_root="/srv/qa")
        assert env.require_remote() == ("qa-host", "/srv/qa")

        with pytest.raises(SyncConfigError, match="needs sshAlias and wpRoot"):
            Environment(name="qa").require_remote()

    def test_environment_is_immutable(self):
        env = Environment.from_dict(
            "local", {"syncOptions": {"uploads": {"pull": False}}}
        )

        with pytest.raises(dataclasses.FrozenInstanceError):
            env.domain = "http://other.local"  # type: ignore[misc]
        with pytest.raises(TypeError):
            env.sync_options["uploads"]["pull"] = True  # type: ignore[index]


class TestSyncConfig:
    """Tests for SyncConfig helpers."""

    def test_local_wp_command_fallbacks(self, tmp_path):
        config = SyncConfig.from_dict(
            {"environments": {"local": {}}}, base_dir=tmp_path
        )
        assert config.local_wp_command() == ["wp"]

        config = SyncConfig.from_dict(
            {"wpBin": "lando wp", "environments": {"local": {}}}, base_dir=tmp_path
        )
        assert config.local_wp_command() == ["lando", "wp"]

        config = SyncConfig.from_dict(
            {"wpBin": "lando wp", "environments": {"local": {"wpBin": "ddev wp"}}},
            base_dir=tmp_path,
        )
        assert config.local_wp_command() == ["ddev", "wp"]

    def test_remote_wp_command_ignores_global_bin(self, tmp_path):
        config = SyncConfig.from_dict(
            {
                "wpBin": "lando wp",
                "environments": {
                    "staging": {"sshAlias": "s", "wpRoot": "/srv"},
                },
            },
            base_dir=tmp_path,
        )
        assert config.remote_wp_command(config.environments["staging"]) == ["wp"]

    def test_require_domain(self, sync_config):
        assert (
            sync_config.require_domain(sync_config.environments["staging"])
            == "https://staging.example.com/"
        )

    def test_require_domain_missing(self, tmp_path):
        config = SyncConfig.from_dict(
            {
                "environments": {
                    "local": {},
                    "staging": {"sshAlias": "s", "wpRoot": "/srv"},
                }
            },
            base_dir=tmp_path,
        )

        with pytest.raises(SyncConfigError, match="Local domain"):
            config.require_domain(config.environments["local"])
        with pytest.raises(SyncConfigError, match="environment staging"):
            config.require_domain(config.environments["staging"])

    def test_multisite_flag(self, tmp_path, config_data):
        config_data["multisite"] = True
        config = SyncConfig.from_dict(config_data, base_dir=tmp_path)
        assert config.multisite is True
