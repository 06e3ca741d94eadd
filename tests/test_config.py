from bivariate_tracts import config


def test_get_api_key_reads_environment(monkeypatch):
    monkeypatch.setenv("CENSUS_API_KEY", "k-123")
    assert config.get_api_key() == "k-123"
    monkeypatch.delenv("CENSUS_API_KEY")
    assert config.get_api_key() is None


def test_ensure_dir_creates_nested(tmp_path):
    p = config.ensure_dir(tmp_path / "a" / "b")
    assert p.is_dir()
    assert config.ensure_dir(p) == p


def test_default_subgroup_is_known():
    assert config.DEFAULT_SUBGROUP in config.SUBGROUP_VARS
    assert config.DEFAULT_K >= 2
