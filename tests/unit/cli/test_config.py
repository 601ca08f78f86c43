"""Unit tests for cli.config module."""

import pytest
import yaml

from src.cli.config import ConfigLoader
from src.cli.errors import ConfigError, ConfigNotFoundError
from src.cli.models import RepositoryConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('GITHUB_OWNER', 'GITHUB_REPO', 'GITHUB_BRANCH'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    def write(content):
        path = tmp_path / "config.yaml"
        path.write_text(content, encoding="utf-8")
        return str(path)
    return write


class TestLoad:
    """Test cases for ConfigLoader.load."""

    def test_minimal_config_uses_defaults(self, config_file):
        """Only owner and repo are required."""
        config = ConfigLoader.load(config_file("owner: octo\nrepo: site\n"))

        assert config == RepositoryConfig(owner="octo", repo="site")
        assert config.placeholder_name == ".placeholder"
        assert config.max_workers == 1

    def test_full_config(self, config_file):
        """Every optional field should be parsed."""
        config = ConfigLoader.load(config_file(
            "owner: octo\n"
            "repo: site\n"
            "branch: content\n"
            "api_url: https://github.example.com/api/v3\n"
            "root_path: /content/\n"
            "placeholder_name: .gitkeep\n"
            "max_workers: 4\n"
            "timeout: 12.5\n"
        ))

        assert config.branch == "content"
        assert config.api_url == "https://github.example.com/api/v3"
        assert config.root_path == "content"
        assert config.placeholder_name == ".gitkeep"
        assert config.max_workers == 4
        assert config.timeout == 12.5

    def test_missing_file_raises(self, tmp_path):
        """A missing file without environment settings is an error."""
        with pytest.raises(ConfigNotFoundError) as exc_info:
            ConfigLoader.load(str(tmp_path / "nope.yaml"))
        assert "nope.yaml" in str(exc_info.value)

    def test_environment_replaces_missing_file(self, tmp_path, monkeypatch):
        """GITHUB_OWNER and GITHUB_REPO are enough without a file."""
        monkeypatch.setenv("GITHUB_OWNER", "env-owner")
        monkeypatch.setenv("GITHUB_REPO", "env-repo")
        monkeypatch.setenv("GITHUB_BRANCH", "dev")

        config = ConfigLoader.load(str(tmp_path / "nope.yaml"))

        assert (config.owner, config.repo, config.branch) == ("env-owner", "env-repo", "dev")

    def test_environment_overrides_file(self, config_file, monkeypatch):
        """Environment values take precedence over file values."""
        monkeypatch.setenv("GITHUB_BRANCH", "preview")

        config = ConfigLoader.load(config_file("owner: octo\nrepo: site\nbranch: main\n"))

        assert config.branch == "preview"

    def test_empty_file_reports_missing_fields(self, config_file):
        """An empty file is valid YAML but lacks required fields."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(config_file(""))
        assert "owner, repo" in str(exc_info.value)

    @pytest.mark.parametrize("content,field", [
        ("owner: octo\nrepo: site\nmax_workers: 0\n", "max_workers"),
        ("owner: octo\nrepo: site\nmax_workers: true\n", "max_workers"),
        ("owner: octo\nrepo: site\ntimeout: -1\n", "timeout"),
        ("owner: octo\nrepo: site\ntimeout: soon\n", "timeout"),
        ("owner: octo\nrepo: site\nplaceholder_name: a/b\n", "placeholder_name"),
        ("owner: octo\nrepo: [a, b]\n", "repo"),
    ])
    def test_invalid_field_values(self, config_file, content, field):
        """Invalid values name the offending field."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(config_file(content))
        assert exc_info.value.config_field == field

    def test_unknown_fields_rejected(self, config_file):
        """Typos in field names should not be silently ignored."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(config_file("owner: octo\nrepo: site\nbrnach: main\n"))
        assert "brnach" in str(exc_info.value)

    def test_invalid_yaml(self, config_file):
        """Malformed YAML is reported as a configuration error."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(config_file("owner: [unclosed\n"))
        assert "Invalid YAML" in str(exc_info.value)

    def test_non_mapping_yaml(self, config_file):
        """The top level must be a mapping."""
        with pytest.raises(ConfigError):
            ConfigLoader.load(config_file("- a\n- b\n"))


class TestSave:
    """Test cases for ConfigLoader.save."""

    def test_save_writes_only_non_defaults(self, tmp_path):
        """Default-valued optional fields are omitted from the file."""
        path = tmp_path / ".github-cms" / "config.yaml"
        config = RepositoryConfig(owner="octo", repo="site", root_path="content", max_workers=2)

        ConfigLoader.save(str(path), config)

        assert yaml.safe_load(path.read_text(encoding="utf-8")) == {
            "owner": "octo",
            "repo": "site",
            "root_path": "content",
            "max_workers": 2,
        }

    def test_saved_file_loads_back(self, tmp_path):
        """A saved configuration should load to an equal config."""
        path = str(tmp_path / "config.yaml")
        config = RepositoryConfig(owner="octo", repo="site", branch="main", timeout=10.0)

        ConfigLoader.save(path, config)

        assert ConfigLoader.load(path) == config
