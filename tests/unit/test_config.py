"""Tests for configuration loading."""

import json

from kubeapply.core.config import (
    DEFAULT_CLUSTER_SCOPED_KINDS,
    ApplyConfig,
    as_bool,
    as_kinds,
    default_config_path,
    get_config_value,
    load_config,
)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_missing_file(self, tmp_path):
        """Test that a missing file yields an empty dict."""
        assert load_config(str(tmp_path / "nope.json")) == {}

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON yields an empty dict."""
        path = tmp_path / "kubeapply.json"
        path.write_text("{not json")

        assert load_config(str(path)) == {}

    def test_non_object(self, tmp_path):
        """Test that a top-level array is ignored."""
        path = tmp_path / "kubeapply.json"
        path.write_text("[1, 2]")

        assert load_config(str(path)) == {}

    def test_valid_file(self, tmp_path):
        """Test that a valid file is returned as-is."""
        path = tmp_path / "kubeapply.json"
        path.write_text(json.dumps({"k8s": {"timeout": 5}}))

        assert load_config(str(path)) == {"k8s": {"timeout": 5}}

    def test_env_path(self, tmp_path, monkeypatch):
        """Test that KUBEAPPLY_CONFIG selects the config file."""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"apply": {"abort_on_error": True}}))
        monkeypatch.setenv("KUBEAPPLY_CONFIG", str(path))

        assert default_config_path() == str(path)
        assert load_config() == {"apply": {"abort_on_error": True}}


class TestGetConfigValue:
    """Tests for get_config_value()."""

    def test_nested_value(self):
        """Test nested key lookup."""
        config = {"k8s": {"ca_cert": "/etc/ca.pem"}}

        assert get_config_value(["k8s", "ca_cert"], config=config) == "/etc/ca.pem"

    def test_env_fallback(self, monkeypatch):
        """Test that K8S_TIMEOUT is used when the key is absent."""
        monkeypatch.setenv("K8S_TIMEOUT", "12")

        assert get_config_value(["k8s", "timeout"], 30, config={}) == "12"

    def test_file_wins_over_env(self, monkeypatch):
        """Test that the config file takes precedence over the environment."""
        monkeypatch.setenv("K8S_TIMEOUT", "12")

        assert get_config_value(["k8s", "timeout"], 30, config={"k8s": {"timeout": 7}}) == 7

    def test_default(self, monkeypatch):
        """Test the default when neither file nor env provide a value."""
        monkeypatch.delenv("APPLY_DELETE_WAIT_TIMEOUT", raising=False)

        assert get_config_value(["apply", "delete_wait_timeout"], 30.0, config={}) == 30.0

    def test_non_mapping_intermediate(self, monkeypatch):
        """Test that a scalar in the middle of the path falls through to default."""
        monkeypatch.delenv("K8S_CA_CERT", raising=False)

        assert get_config_value(["k8s", "ca_cert"], "none", config={"k8s": "x"}) == "none"


class TestConverters:
    """Tests for as_bool() and as_kinds()."""

    def test_as_bool(self):
        """Test truthy and falsy spellings."""
        assert as_bool("true") and as_bool("1") and as_bool(" YES ") and as_bool(True)
        assert not as_bool("false") and not as_bool("0") and not as_bool(False)

    def test_as_kinds_default(self):
        """Test that None keeps the default set."""
        assert as_kinds(None) == DEFAULT_CLUSTER_SCOPED_KINDS

    def test_as_kinds_string(self):
        """Test comma separated input."""
        assert as_kinds("Namespace, ClusterRole,,") == frozenset({"Namespace", "ClusterRole"})

    def test_as_kinds_list(self):
        """Test JSON list input."""
        assert as_kinds(["Namespace", "StorageClass"]) == frozenset({"Namespace", "StorageClass"})


class TestApplyConfig:
    """Tests for ApplyConfig normalization."""

    def test_defaults(self):
        """Test default values."""
        config = ApplyConfig("https://api:6443", "tok")

        assert config.default_namespace is None
        assert config.abort_on_error is False
        assert config.delete_wait_timeout == 30.0
        assert config.delete_poll_interval == 1.0
        assert config.cluster_scoped_kinds == frozenset({"Namespace"})

    def test_normalization(self):
        """Test trailing slash, token whitespace and blank namespace handling."""
        config = ApplyConfig("https://api:6443//", " tok\n", default_namespace="  ")

        assert config.api_server == "https://api:6443"
        assert config.token == "tok"
        assert config.default_namespace is None
