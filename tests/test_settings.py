import pytest
from pydantic import ValidationError

from routescore.config.settings import ScoringSettings, get_logging_config, get_settings
from routescore.scoring.route_score import DEFAULT_POLICY


@pytest.fixture
def fresh_settings():
    # get_settings is lru_cached; clear around each test that changes the environment.
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_packaged_defaults_match_builtin_scoring_policy():
    settings = get_settings()
    assert settings.scoring.policy() == DEFAULT_POLICY
    assert settings.nearest.limit == 10


def test_env_overrides_speed_and_api_key(monkeypatch, fresh_settings):
    monkeypatch.setenv("ROUTESCORE_DEFAULT_SPEED_KMH", "55")
    monkeypatch.setenv("DIRECTIONS_API_KEY", "secret")

    settings = get_settings()

    assert settings.eta.default_speed_kmh == 55
    assert settings.directions.api_key == "secret"


def test_external_yaml_replaces_packaged_defaults(monkeypatch, tmp_path, fresh_settings):
    cfg = tmp_path / "routescore.yaml"
    cfg.write_text(
        "eta:\n  default_speed_kmh: 60\nscoring:\n  warning_penalty: 7\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ROUTESCORE_CONFIG_PATH", str(cfg))
    monkeypatch.delenv("ROUTESCORE_DEFAULT_SPEED_KMH", raising=False)

    settings = get_settings()

    assert settings.eta.default_speed_kmh == 60
    assert settings.scoring.policy().warning_penalty == 7
    # Untouched sections fall back to model defaults.
    assert settings.scoring.policy().delay_bands == DEFAULT_POLICY.delay_bands


def test_delay_bands_must_be_descending():
    with pytest.raises(ValidationError, match="highest first"):
        ScoringSettings(
            delay_bands=[
                {"above_pct": 10, "penalty": 5},
                {"above_pct": 50, "penalty": 30},
            ]
        )


def test_non_positive_default_speed_is_rejected():
    with pytest.raises(ValidationError):
        get_settings().model_validate({"eta": {"default_speed_kmh": 0}})


def test_logging_config_is_a_fresh_copy():
    cfg = get_logging_config()
    cfg["root"]["level"] = "DEBUG"
    assert get_logging_config()["root"]["level"] == "INFO"
