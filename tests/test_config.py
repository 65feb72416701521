"""
Tests for configuration loading — provision.yml parsing and validation.
"""

from pathlib import Path

import pytest

from macprovision.core.config.loader import (
    StaticConfigSource,
    YamlConfigSource,
    find_config_file,
    load_config,
)
from macprovision.core.errors import ConfigError, PrerequisiteError
from macprovision.core.models.config import ProvisionConfig
from macprovision.core.use_cases.config_check import check_config

FULL_CONFIG = """\
    version: 1
    brewfile: Brewfile
    formulae: [git, wget]
    casks: [iterm2]
    appstore: ["497799835"]
    vscode: [ms-python.python]
    npm_packages: [typescript]
    update_frequency: 3600
    settings:
      - name: show-path-bar
        defaults: {domain: com.apple.finder, key: ShowPathbar, value: true}
      - command: [killall, Finder]
    dock:
      add: [/Applications/iTerm.app]
      remove: [Maps]
      replace:
        - {add: /Applications/Arc.app, replacing: Safari}
    extras:
      - name: dotnet
        question: Install .NET?
        formulae: [dotnet]
        env: {DOTNET_ROOT: /opt/homebrew/opt/dotnet/libexec}
    git:
      color_ui: false
    reboot: false
"""


class TestLoadConfig:
    def test_full(self, write_config):
        path = write_config(FULL_CONFIG)
        config = load_config(path)
        assert config.formulae == ["git", "wget"]
        assert config.appstore == ["497799835"]
        assert config.update_frequency == 3600
        assert config.settings[0].defaults.key == "ShowPathbar"
        assert config.settings[1].command == ["killall", "Finder"]
        assert config.dock.replace[0].replacing == "Safari"
        assert config.extras[0].env["DOTNET_ROOT"].endswith("libexec")
        assert not config.git.color_ui
        assert not config.reboot

    def test_brewfile_resolved_against_config_dir(self, write_config):
        path = write_config(FULL_CONFIG)
        config = load_config(path)
        assert config.brewfile == str((path.parent / "Brewfile").resolve())

    def test_empty_file_is_default_config(self, write_config):
        config = load_config(write_config(""))
        assert config == ProvisionConfig()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(write_config("formulae: [git\n"))

    def test_not_a_mapping(self, write_config):
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(write_config("- git\n- wget\n"))

    def test_schema_error(self, write_config):
        with pytest.raises(ConfigError, match="Invalid provision configuration"):
            load_config(write_config("update_frequency: soon\n"))

    def test_config_error_is_prerequisite_error(self, tmp_path: Path):
        with pytest.raises(PrerequisiteError):
            load_config(tmp_path / "nope.yml")


class TestFindConfigFile:
    def test_walks_up(self, write_config, tmp_path: Path):
        path = write_config("formulae: [git]\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == path.resolve()

    def test_not_found(self, tmp_path: Path):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert find_config_file(empty) is None


class TestConfigSources:
    def test_yaml_source_explicit_path(self, write_config):
        path = write_config("casks: [iterm2]\n")
        source = YamlConfigSource(path)
        assert source.load().casks == ["iterm2"]
        assert source.path == path

    def test_yaml_source_discovers(self, write_config, tmp_path: Path, monkeypatch):
        write_config("casks: [iterm2]\n")
        monkeypatch.chdir(tmp_path)
        source = YamlConfigSource()
        assert source.load().casks == ["iterm2"]
        assert source.path is not None

    def test_yaml_source_missing(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("macprovision.core.config.loader.find_config_file", lambda: None)
        with pytest.raises(ConfigError, match="No provision.yml"):
            YamlConfigSource().load()

    def test_static_source(self):
        config = ProvisionConfig(formulae=["git"])
        assert StaticConfigSource(config).load() is config


class TestCheckConfig:
    def test_valid(self, write_config):
        result = check_config(write_config("formulae: [git]\n"))
        assert result.valid
        assert result.to_dict()["formulae"] == 1

    def test_duplicates_are_errors(self, write_config):
        result = check_config(write_config("formulae: [git, git]\ncasks: [a, b, a]\n"))
        assert not result.valid
        assert "Duplicate formulae: git" in result.errors
        assert "Duplicate casks: a" in result.errors

    def test_missing_brewfile_warns(self, write_config):
        result = check_config(write_config("brewfile: Brewfile\nformulae: [git]\n"))
        assert result.valid
        assert any("Brewfile not found" in w for w in result.warnings)

    def test_brewfile_overrides_lists_warns(self, write_config, tmp_path: Path):
        (tmp_path / "Brewfile").write_text('brew "git"\n')
        result = check_config(write_config("brewfile: Brewfile\nformulae: [git]\n"))
        assert any("will be ignored" in w for w in result.warnings)

    def test_no_packages_warns(self, write_config):
        result = check_config(write_config("reboot: false\n"))
        assert result.valid
        assert any("No packages" in w for w in result.warnings)

    def test_empty_extra_warns(self, write_config):
        result = check_config(write_config("formulae: [git]\nextras:\n  - name: nothing\n"))
        assert any("'nothing' installs nothing" in w for w in result.warnings)

    def test_invalid(self, write_config):
        result = check_config(write_config("- nope\n"))
        assert not result.valid
        assert result.errors
