import pytest
from pathlib import Path
from unittest.mock import patch

from riskindex.config.resolvers import default_db_path, resolve_db_path, SCHEMA_VERSION
from riskindex.domain.exceptions import ConfigurationError


class TestDefaultDbPath:

    def test_uses_platform_data_dir(self, tmp_path):
        with patch("riskindex.config.resolvers.user_data_dir", return_value=str(tmp_path / "data")):
            p = default_db_path()
        assert p.parent == tmp_path / "data"
        assert p.parent.is_dir()
        assert p.name == f"riskindex-v{SCHEMA_VERSION}.sqlite"


class TestResolveDbPath:

    def test_explicit_path_wins(self, tmp_path):
        target = tmp_path / "store.sqlite"
        assert resolve_db_path(str(target)) == target

    def test_falls_back_to_default(self, tmp_path):
        fallback = tmp_path / "default.sqlite"
        with patch("riskindex.config.resolvers.default_db_path", return_value=fallback):
            assert resolve_db_path(None) == fallback

    def test_must_exist_missing(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Record store not found"):
            resolve_db_path(str(tmp_path / "missing.sqlite"), must_exist=True)

    def test_must_exist_present(self, tmp_path):
        target = tmp_path / "present.sqlite"
        target.touch()
        assert resolve_db_path(str(target), must_exist=True) == target
