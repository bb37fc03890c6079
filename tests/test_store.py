"""Tests for the configuration file: loading, validation and saving."""

from __future__ import annotations

import pytest
import yaml

from sessioncore.store import ConfigDocument, ConfigInvalid, ConfigStore


@pytest.fixture
def store(server_dir):
    return ConfigStore(server_dir / "SessionCore.yml", server_dir)


class TestSave:
    """Tests for writing the configuration."""

    def test_round_trip(self, store, server_dir):
        """Saving then loading yields the same pair."""
        store.save(ConfigDocument(auth_endpoint="https://x", server_file="s.jar"))

        assert store.load() == {"auth-endpoint": "https://x", "server-file": "s.jar"}

    def test_block_layout(self, store):
        """The file is block-style YAML with the endpoint first."""
        store.save(ConfigDocument(auth_endpoint="https://x", server_file="s.jar"))

        text = store.path.read_text()
        assert text == "auth-endpoint: https://x\nserver-file: s.jar\n"

    def test_special_characters_survive(self, store):
        """Values with YAML-significant characters are stored verbatim."""
        endpoint = "https://auth.example/api?x=1&y=#frag: 'quoted'"
        store.save(ConfigDocument(auth_endpoint=endpoint, server_file="my server.jar"))

        loaded = store.load()
        assert loaded["auth-endpoint"] == endpoint
        assert loaded["server-file"] == "my server.jar"

    def test_save_overwrites(self, store):
        store.save(ConfigDocument(auth_endpoint="a", server_file="a.jar"))
        store.save(ConfigDocument(auth_endpoint="b", server_file="b.jar"))

        assert store.load() == {"auth-endpoint": "b", "server-file": "b.jar"}


class TestValidate:
    """Tests for accepting or rejecting a stored configuration."""

    def test_valid(self, store, server_dir):
        (server_dir / "s.jar").write_bytes(b"")
        store.save(ConfigDocument(auth_endpoint="https://x", server_file="s.jar"))

        document = store.validate()

        assert document.auth_endpoint == "https://x"
        assert document.server_file == "s.jar"

    def test_missing_file(self, store):
        with pytest.raises(ConfigInvalid) as exc:
            store.validate()
        assert exc.value.document == {}

    def test_missing_key(self, store):
        store.path.write_text("auth-endpoint: https://x\n")

        with pytest.raises(ConfigInvalid) as exc:
            store.validate()
        assert "server-file" in exc.value.reason
        assert exc.value.document == {"auth-endpoint": "https://x"}

    def test_stale_server_file(self, store, server_dir):
        """A server file deleted since the last run invalidates the config."""
        jar = server_dir / "s.jar"
        jar.write_bytes(b"")
        store.save(ConfigDocument(auth_endpoint="https://x", server_file="s.jar"))
        jar.unlink()

        with pytest.raises(ConfigInvalid) as exc:
            store.validate()
        assert "does not exist" in exc.value.reason
        assert exc.value.document["auth-endpoint"] == "https://x"

    def test_server_file_must_be_a_file(self, store, server_dir):
        (server_dir / "s.jar").mkdir()
        store.save(ConfigDocument(auth_endpoint="https://x", server_file="s.jar"))

        with pytest.raises(ConfigInvalid):
            store.validate()

    def test_empty_document(self, store):
        store.path.write_text("")

        with pytest.raises(ConfigInvalid):
            store.validate()

    def test_not_a_mapping(self, store):
        store.path.write_text(yaml.safe_dump(["a", "b"]))

        with pytest.raises(ConfigInvalid):
            store.load()

    def test_unparseable(self, store):
        store.path.write_text("auth-endpoint: [unclosed\n")

        with pytest.raises(ConfigInvalid) as exc:
            store.load()
        assert "Failed to parse" in exc.value.reason

    def test_non_string_values_are_coerced(self, store, server_dir):
        (server_dir / "123").write_bytes(b"")
        store.path.write_text("auth-endpoint: 42\nserver-file: 123\n")

        document = store.validate()

        assert document.auth_endpoint == "42"
        assert document.server_file == "123"

    def test_relative_to_root(self, tmp_path):
        """The server file is resolved against the store's root, not the cwd."""
        root = tmp_path / "srv"
        root.mkdir()
        (root / "s.jar").write_bytes(b"")
        store = ConfigStore(tmp_path / "conf.yml", root)
        store.save(ConfigDocument(auth_endpoint="e", server_file="s.jar"))

        assert store.validate().server_file == "s.jar"


class TestConfigDocument:
    def test_mapping_uses_file_keys(self):
        document = ConfigDocument(auth_endpoint="e", server_file="s.jar")
        assert document.to_mapping() == {"auth-endpoint": "e", "server-file": "s.jar"}

    def test_accepts_file_keys(self):
        document = ConfigDocument.model_validate({"auth-endpoint": "e", "server-file": "s.jar"})
        assert document.server_file == "s.jar"
