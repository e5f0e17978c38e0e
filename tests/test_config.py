"""Tests for configuration system."""

from __future__ import annotations

import json

import pytest

from budget_tree.allocation.rounding import RoundingMode, RoundingPolicy
from budget_tree.config import (
    BudgetTreeConfig,
    ConfigLoadError,
    ConfigValidationError,
    DefaultsConfig,
    DisplayConfig,
    RoundingConfig,
    apply_env_overrides,
    generate_config_template,
    generate_config_template_string,
    get_config,
    get_global_config_path,
    get_home,
    get_project_config_path,
    load_config_file,
    merge_config_data,
    read_config_data,
)


# =============================================================================
# Dataclasses
# =============================================================================


class TestConfigDataclasses:
    """Unit tests for config dataclass construction and defaults."""

    def test_defaults_config_has_correct_defaults(self):
        config = DefaultsConfig()
        assert config.output_format == "text"
        assert config.quiet is False

    def test_rounding_config_has_correct_defaults(self):
        config = RoundingConfig()
        assert config.places == 2
        assert config.mode == "half-up"

    def test_display_config_has_correct_defaults(self):
        config = DisplayConfig()
        assert config.value_places == 2
        assert config.variance_places == 2
        assert config.width is None

    def test_config_has_all_sections(self):
        config = BudgetTreeConfig()
        assert config.version == "1"
        assert isinstance(config.defaults, DefaultsConfig)
        assert isinstance(config.rounding, RoundingConfig)
        assert isinstance(config.display, DisplayConfig)

    def test_rounding_policy(self):
        config = BudgetTreeConfig(rounding=RoundingConfig(places=3, mode="half-even"))
        assert config.rounding_policy() == RoundingPolicy(places=3, mode=RoundingMode.HALF_EVEN)


class TestConfigSerialization:
    """Unit tests for config serialization."""

    def test_round_trip(self):
        config = BudgetTreeConfig(
            defaults=DefaultsConfig(output_format="json", quiet=True),
            rounding=RoundingConfig(places=4, mode="half-even"),
            display=DisplayConfig(width=80),
        )
        restored = BudgetTreeConfig.from_dict(json.loads(json.dumps(config.to_dict())))
        assert restored == config

    def test_display_exclude_none(self):
        assert "width" not in DisplayConfig().to_dict(exclude_none=True)
        assert DisplayConfig().to_dict()["width"] is None

    def test_from_dict_partial(self):
        config = BudgetTreeConfig.from_dict({"rounding": {"mode": "half-even"}})
        assert config.rounding.mode == "half-even"
        assert config.rounding.places == 2
        assert config.defaults.output_format == "text"

    def test_strict_rejects_unknown_top_level(self):
        with pytest.raises(ConfigValidationError, match="Unknown fields in config: bogus"):
            BudgetTreeConfig.from_dict({"bogus": 1}, strict=True)

    def test_strict_rejects_unknown_section_field(self):
        with pytest.raises(ConfigValidationError, match="Unknown fields in rounding config"):
            BudgetTreeConfig.from_dict({"rounding": {"digits": 2}}, strict=True)

    def test_strict_ignores_template_comments(self):
        config = BudgetTreeConfig.from_dict(generate_config_template(), strict=True)
        config.validate()

    def test_non_strict_ignores_unknown(self):
        config = BudgetTreeConfig.from_dict({"bogus": 1, "defaults": {"extra": True}})
        assert config.defaults.output_format == "text"


class TestConfigValidation:

    def test_default_config_is_valid(self):
        BudgetTreeConfig().validate()

    def test_invalid_output_format(self):
        with pytest.raises(ConfigValidationError, match="Invalid output_format 'xml'"):
            DefaultsConfig(output_format="xml").validate()

    def test_invalid_rounding_mode(self):
        with pytest.raises(ConfigValidationError, match="Invalid rounding mode"):
            RoundingConfig(mode="down").validate()

    @pytest.mark.parametrize("places", [-1, 7, 2.5, True])
    def test_invalid_places(self, places):
        with pytest.raises(ConfigValidationError, match="rounding.places"):
            RoundingConfig(places=places).validate()

    def test_invalid_width(self):
        with pytest.raises(ConfigValidationError, match="display.width"):
            DisplayConfig(width=0).validate()


# =============================================================================
# Loading and merging
# =============================================================================


class TestConfigLoading:

    def test_missing_file_returns_defaults(self, tmp_path):
        assert load_config_file(tmp_path / "none.json") == BudgetTreeConfig()

    def test_loads_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"rounding": {"places": 3}}))
        assert load_config_file(path).rounding.places == 3

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops")
        with pytest.raises(ConfigLoadError, match="Invalid JSON"):
            load_config_file(path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigLoadError, match="must be a JSON object"):
            load_config_file(path)

    def test_read_config_data_missing_is_empty(self, tmp_path):
        assert read_config_data(tmp_path / "none.json") == {}

    def test_global_path_under_home(self, tmp_path):
        assert get_global_config_path() == tmp_path / "home" / ".budget_tree_config.json"

    def test_project_path(self, tmp_path):
        assert get_project_config_path(tmp_path) == tmp_path / "config.json"


class TestGetHome:

    def test_defaults_to_cwd(self, tmp_path):
        assert get_home() == tmp_path / ".budget_tree"

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BUDGET_TREE_HOME", str(tmp_path / "elsewhere"))
        assert get_home() == tmp_path / "elsewhere"

    def test_explicit_override_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BUDGET_TREE_HOME", str(tmp_path / "elsewhere"))
        assert get_home(tmp_path / "explicit") == tmp_path / "explicit"


class TestMergeConfigData:

    def test_later_layer_wins(self):
        merged = merge_config_data(
            {"rounding": {"places": 3}},
            {"rounding": {"mode": "half-even"}},
        )
        assert merged == {"rounding": {"places": 3, "mode": "half-even"}}

    def test_later_layer_can_restore_default(self):
        merged = merge_config_data(
            {"rounding": {"places": 3}, "defaults": {"quiet": True}},
            {"rounding": {"places": 2}, "defaults": {"quiet": False}},
        )
        config = BudgetTreeConfig.from_dict(merged)
        assert config.rounding.places == 2
        assert config.defaults.quiet is False

    def test_absent_keys_do_not_override(self):
        merged = merge_config_data({"display": {"width": 90}}, {"display": {}})
        assert merged["display"]["width"] == 90

    def test_inputs_not_modified(self):
        base = {"rounding": {"places": 3}}
        merge_config_data(base, {"rounding": {"places": 4}})
        assert base == {"rounding": {"places": 3}}

    def test_no_layers(self):
        assert merge_config_data() == {}


class TestEnvOverrides:

    def test_output_format_and_quiet(self, monkeypatch):
        monkeypatch.setenv("BUDGET_TREE_OUTPUT_FORMAT", "json")
        monkeypatch.setenv("BUDGET_TREE_QUIET", "yes")
        config = apply_env_overrides(BudgetTreeConfig())
        assert config.defaults.output_format == "json"
        assert config.defaults.quiet is True

    def test_rounding(self, monkeypatch):
        monkeypatch.setenv("BUDGET_TREE_ROUNDING_MODE", "half-even")
        monkeypatch.setenv("BUDGET_TREE_ROUNDING_PLACES", "4")
        config = apply_env_overrides(BudgetTreeConfig())
        assert config.rounding.mode == "half-even"
        assert config.rounding.places == 4

    def test_display(self, monkeypatch):
        monkeypatch.setenv("BUDGET_TREE_VARIANCE_PLACES", "1")
        monkeypatch.setenv("BUDGET_TREE_WIDTH", "100")
        config = apply_env_overrides(BudgetTreeConfig())
        assert config.display.variance_places == 1
        assert config.display.width == 100

    def test_non_integer_places(self, monkeypatch):
        monkeypatch.setenv("BUDGET_TREE_ROUNDING_PLACES", "two")
        with pytest.raises(ConfigValidationError, match="must be an integer, got 'two'"):
            apply_env_overrides(BudgetTreeConfig())


class TestGetConfig:

    def test_defaults_when_no_files(self, tmp_path):
        assert get_config(home=tmp_path / ".budget_tree") == BudgetTreeConfig()

    def test_precedence(self, tmp_path, monkeypatch):
        get_global_config_path().write_text(json.dumps({
            "rounding": {"places": 3, "mode": "half-even"},
            "display": {"width": 70},
        }))
        home = tmp_path / ".budget_tree"
        home.mkdir()
        get_project_config_path(home).write_text(json.dumps({"rounding": {"places": 4}}))
        monkeypatch.setenv("BUDGET_TREE_WIDTH", "99")

        config = get_config(home=home)

        assert config.rounding.places == 4
        assert config.rounding.mode == "half-even"
        assert config.display.width == 99

    def test_project_can_restore_default_over_global(self, tmp_path):
        get_global_config_path().write_text(json.dumps({"rounding": {"places": 3}}))
        home = tmp_path / ".budget_tree"
        home.mkdir()
        get_project_config_path(home).write_text(json.dumps({"rounding": {"places": 2}}))

        assert get_config(home=home).rounding.places == 2

    def test_invalid_effective_config_raises(self, monkeypatch):
        monkeypatch.setenv("BUDGET_TREE_ROUNDING_MODE", "sideways")
        with pytest.raises(ConfigValidationError):
            get_config()


def test_template_string_is_json():
    data = json.loads(generate_config_template_string())
    assert data["rounding"]["places"] == 2
    assert data["defaults"]["output_format"] == "text"
