"""
Tests for settings loading and config validation.
"""

import pytest

from pafcluster.config import ClusteringConfig, load_config, load_settings
from pafcluster.errors import ConfigurationError


class TestLoadSettings:
    def test_defaults_without_file(self):
        settings = load_settings()

        assert settings["clustering"]["bsr_threshold"] == 0.25
        assert settings["clustering"]["brh"] is True

    def test_user_settings_merge_over_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("clustering:\n  species_set: [1, 2]\n  all_bests: true\n")

        settings = load_settings(path)

        assert settings["clustering"]["species_set"] == [1, 2]
        assert settings["clustering"]["all_bests"] is True
        assert settings["clustering"]["bsr_threshold"] == 0.25

    def test_defaults_are_not_mutated(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("clustering:\n  bsr_threshold: 0.5\n")

        load_settings(path)

        assert load_settings()["clustering"]["bsr_threshold"] == 0.25

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_settings(tmp_path / "missing.yaml")

    def test_non_mapping_is_fatal(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigurationError):
            load_settings(path)


class TestClusteringConfig:
    """Test config construction and validation."""

    def test_from_dict_accepts_original_keys(self):
        config = ClusteringConfig.from_dict(
            {"species_set": [1, 2, 3], "brh": 0, "all_bests": 1, "no_filters": 0, "bsr_threshold": 0.3}
        )

        assert config.species_set == (1, 2, 3)
        assert not config.include_rbh
        assert config.policy.all_bests is True
        assert config.policy.bsr_threshold == 0.3

    def test_unknown_keys_are_ignored(self):
        config = ClusteringConfig.from_dict({"species_set": [1], "gene_stable_id": "X"})

        assert config.species_set == (1,)

    @pytest.mark.parametrize(
        "species_set",
        [(), None, (1, 1), (1, "2"), "1,2"],
    )
    def test_bad_species_set(self, species_set):
        config = ClusteringConfig.from_dict({"species_set": species_set})

        with pytest.raises(ConfigurationError):
            config.validate()

    def test_negative_threshold(self):
        with pytest.raises(ConfigurationError):
            ClusteringConfig(species_set=(1,), bsr_threshold=-0.1).validate()

    def test_min_cluster_size(self):
        with pytest.raises(ConfigurationError):
            ClusteringConfig(species_set=(1,), min_cluster_size=0).validate()

    @pytest.mark.parametrize(
        "field, value",
        [("min_cluster_size", "2"), ("progress_every", "x"), ("first_cluster_id", 1.5), ("min_cluster_size", True)],
    )
    def test_non_integer_fields(self, field, value):
        config = ClusteringConfig.from_dict({"species_set": [1]}).with_overrides(**{field: value})

        with pytest.raises(ConfigurationError, match=field):
            config.validate()

    def test_overrides_skip_none(self):
        config = ClusteringConfig(species_set=(1,), bsr_threshold=0.4)

        updated = config.with_overrides(bsr_threshold=None, species_set=[3, 4], all_bests=True)

        assert updated.bsr_threshold == 0.4
        assert updated.species_set == (3, 4)
        assert updated.all_bests is True

    def test_load_config(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("clustering:\n  species_set: [7, 8]\nprogress:\n  step_every: 10\n")

        config = load_config(path, include_rbh=False)

        assert config.species_set == (7, 8)
        assert config.include_rbh is False
        assert config.progress_every == 10

    def test_load_config_string_values_from_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("clustering:\n  species_set: [1]\n  min_cluster_size: \"2\"\nprogress:\n  step_every: x\n")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_load_config_without_species_fails(self):
        with pytest.raises(ConfigurationError):
            load_config()
