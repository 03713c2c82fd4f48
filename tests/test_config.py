from marine_species_integration import config


def test_ensure_dirs_creates_nested_directories(tmp_path):
    out, maps = tmp_path / "data" / "merged", tmp_path / "outputs" / "maps"
    config.ensure_dirs(out, maps)
    config.ensure_dirs(out)
    assert out.is_dir() and maps.is_dir()
