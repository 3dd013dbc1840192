"""Test config resolution and validation with Pydantic."""

import pytest
from pydantic import ValidationError

from accretion.schemas import ParamConfig, UserConfig, CLIConfig, InternalConfig
from accretion.schemas.resolve import resolve_config, deep_merge
from accretion.schemas.user import UserDownlinkConfig, UserClustererConfig, UserStoreConfig

pytestmark = pytest.mark.unit


class TestConfigResolution:
    """Test resolve_config() precedence and merging."""

    def test_resolve_config_all_defaults(self):
        """Resolving with no user/CLI overrides uses all ParamConfig defaults."""
        config = resolve_config(ParamConfig(), None, None)

        assert isinstance(config, InternalConfig)
        assert config.downlink.percentage == 25.0
        assert config.downlink.density_weight == 0.5
        assert config.downlink.acceleration_weight == 0.5
        assert config.downlink.max_attempts == 1000
        assert config.clusterer.max_iterations == 500
        assert config.clusterer.seed is None
        assert config.store.source_dir is None
        assert config.processor.failure_policy == "skip_frame"

    def test_user_config_overrides_param_config(self):
        user = UserConfig(DOWNLINK_PERCENTAGE=40)
        config = resolve_config(ParamConfig(), user, None)

        assert config.downlink.percentage == 40.0

    def test_cli_overrides_user(self):
        user = UserConfig(DOWNLINK_PERCENTAGE=40, SEED=1, START_INDEX=3)
        cli = CLIConfig(downlink_percentage=10, seed=9)
        config = resolve_config(ParamConfig(), user, cli)

        assert config.downlink.percentage == 10.0
        assert config.clusterer.seed == 9
        # User value survives where the CLI is silent
        assert config.sequence.start_index == 3

    def test_dict_inputs(self):
        config = resolve_config({}, {"END_INDEX": 20}, {"start_index": 2})

        assert config.sequence.start_index == 2
        assert config.sequence.end_index == 20

    def test_internal_config_is_frozen(self):
        config = resolve_config(ParamConfig(), None, None)

        with pytest.raises(ValidationError):
            config.sequence_id = "other"

    def test_inverted_range_raises(self):
        with pytest.raises(ValueError):
            resolve_config(ParamConfig(), UserConfig(START_INDEX=10, END_INDEX=2), None)

    def test_percentage_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(DOWNLINK_PERCENTAGE=150), None)

    def test_unknown_failure_policy_rejected(self):
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(FAILURE_POLICY="retry"), None)


class TestStoreDirectories:
    """base_dir fills in unset frame directories."""

    def test_base_dir_fills_store(self, tmp_path):
        config = resolve_config(ParamConfig(), UserConfig(BASE_DIR=str(tmp_path)), None)

        assert config.store.source_dir == str(tmp_path / "frames")
        assert config.store.downlink_dir == str(tmp_path / "downlink")

    def test_explicit_source_dir_wins(self, tmp_path):
        user = UserConfig(BASE_DIR=str(tmp_path), SOURCE_DIR="/data/camera")
        config = resolve_config(ParamConfig(), user, None)

        assert config.store.source_dir == "/data/camera"
        assert config.store.downlink_dir == str(tmp_path / "downlink")

    def test_filename_pattern_needs_index(self):
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(FILENAME_PATTERN="frame.pgm"), None)


class TestUserConfigAliases:
    """Test UserConfig flat aliases and nested sections map correctly."""

    def test_flat_aliases(self):
        user = UserConfig(
            SEQUENCE_ID="drop1",
            THRESHOLD_WORKERS=4,
            MAX_COMPONENTS=50,
            LOG_LEVEL="DEBUG",
        )
        config = resolve_config(ParamConfig(), user, None)

        assert config.sequence_id == "drop1"
        assert config.threshold.workers == 4
        assert config.labeler.max_components == 50
        assert config.logging.level == "DEBUG"

    def test_field_names_accepted(self):
        config = resolve_config(ParamConfig(), UserConfig(seed=5, end_index=9), None)

        assert config.clusterer.seed == 5
        assert config.sequence.end_index == 9

    def test_failure_policy_normalized(self):
        config = resolve_config(ParamConfig(), UserConfig(FAILURE_POLICY=" Fail_Fast "), None)

        assert config.processor.failure_policy == "fail_fast"

    def test_nested_sections(self):
        user = UserConfig(
            downlink=UserDownlinkConfig(density_weight=1, max_attempts=10),
            clusterer=UserClustererConfig(max_iterations=50),
            store=UserStoreConfig(filename_pattern="img_{index}.png"),
        )
        config = resolve_config(ParamConfig(), user, None)

        assert config.downlink.density_weight == 1.0
        assert config.downlink.max_attempts == 10
        assert config.downlink.acceleration_weight == 0.5
        assert config.clusterer.max_iterations == 50
        assert config.store.filename_pattern == "img_{index}.png"

    def test_nested_wins_over_flat(self):
        user = UserConfig(DOWNLINK_PERCENTAGE=10, downlink=UserDownlinkConfig(percentage=30))
        config = resolve_config(ParamConfig(), user, None)

        assert config.downlink.percentage == 30.0

    def test_unknown_keys_ignored(self):
        user = UserConfig.model_validate({"CAMERA_MODEL": "X100", "SEED": 2})
        config = resolve_config(ParamConfig(), user, None)

        assert config.clusterer.seed == 2


def test_deep_merge():
    merged = deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"d": 4}}, {"e": 5})

    assert merged == {"a": 1, "b": {"c": 2, "d": 4}, "e": 5}
