"""
Tests for the lightweight settings base class.
"""

import pytest

from calsync.common.settings import (
    AliasChoices,
    BaseSettings,
    Field,
    SettingsConfigDict,
)


class ExampleSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EXAMPLE_", case_sensitive=False)

    NAME: str = Field(
        default="calendar-sync",
        validation_alias=AliasChoices("EXAMPLE_NAME", "APP_NAME"),
    )
    RATIO: float = Field(default=0.5)
    ENABLED: bool = Field(default=False)
    PLAIN: str = "plain-default"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "EXAMPLE_NAME",
        "APP_NAME",
        "EXAMPLE_RATIO",
        "EXAMPLE_ENABLED",
        "EXAMPLE_PLAIN",
        "example_ratio",
    ):
        monkeypatch.delenv(name, raising=False)


class TestBaseSettings:
    """Tests for value resolution and coercion."""

    def test_defaults(self):
        settings = ExampleSettings()

        assert settings.NAME == "calendar-sync"
        assert settings.RATIO == 0.5
        assert settings.ENABLED is False
        assert settings.PLAIN == "plain-default"

    def test_alias_choices_in_order(self, monkeypatch):
        monkeypatch.setenv("APP_NAME", "from-alias")
        assert ExampleSettings().NAME == "from-alias"

        monkeypatch.setenv("EXAMPLE_NAME", "first-alias")
        assert ExampleSettings().NAME == "first-alias"

    def test_prefixed_names_and_coercion(self, monkeypatch):
        monkeypatch.setenv("EXAMPLE_RATIO", "2.5")
        monkeypatch.setenv("EXAMPLE_ENABLED", "yes")
        monkeypatch.setenv("EXAMPLE_PLAIN", "from-env")

        settings = ExampleSettings()

        assert settings.RATIO == 2.5
        assert settings.ENABLED is True
        assert settings.PLAIN == "from-env"

    def test_lowercase_names_when_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("example_ratio", "0.25")
        assert ExampleSettings().RATIO == 0.25

    def test_kwargs_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("EXAMPLE_RATIO", "9")
        assert ExampleSettings(RATIO=1.0, ENABLED=True).RATIO == 1.0
