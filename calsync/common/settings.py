"""
Lightweight settings base class.

Loads typed fields from keyword arguments, environment variables and an
optional .env file, in that order of priority, with a pydantic_settings-like
surface (Field, AliasChoices, SettingsConfigDict) that is easy to patch in
tests.
"""

from __future__ import annotations

import os
from abc import ABC
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, get_type_hints


class FieldInfo:
    """Default, description and env aliases of one settings field."""

    def __init__(
        self,
        default: Any = None,
        description: str = "",
        validation_alias: Optional[Union[str, AliasChoices]] = None,
    ) -> None:
        self.default = default
        self.description = description
        self.validation_alias = validation_alias


def Field(
    default: Any = None,
    *,
    description: str = "",
    validation_alias: Optional[Union[str, AliasChoices]] = None,
) -> Any:
    """Declare a settings field."""
    return FieldInfo(
        default=default,
        description=description,
        validation_alias=validation_alias,
    )


class SettingsConfigDict:
    """Where and how settings are looked up."""

    def __init__(
        self,
        env_file: Optional[str] = None,
        env_file_encoding: str = "utf-8",
        env_prefix: str = "",
        case_sensitive: bool = True,
    ) -> None:
        self.env_file = env_file
        self.env_file_encoding = env_file_encoding
        self.env_prefix = env_prefix
        self.case_sensitive = case_sensitive


class AliasChoices:
    """Environment variable names tried, in order, before the prefixed name."""

    def __init__(self, *choices: str) -> None:
        self.choices = list(choices)

    def __iter__(self):
        return iter(self.choices)


class BaseSettings(ABC):
    """Base class for settings that loads from environment variables."""

    model_config: SettingsConfigDict = SettingsConfigDict()

    def __init__(self, **kwargs: Any) -> None:
        file_values: Dict[str, str] = {}
        if self.model_config.env_file:
            file_values = self._load_env_file(self.model_config.env_file)

        for name, field_type in get_type_hints(self.__class__).items():
            if name.startswith("_") or name == "model_config":
                continue

            declared = getattr(self.__class__, name, None)
            if isinstance(declared, FieldInfo):
                default, alias = declared.default, declared.validation_alias
            else:
                default, alias = declared, None

            if name in kwargs:
                value = kwargs[name]
            else:
                value = self._lookup(self._env_names(name, alias), file_values)
                if value is None:
                    value = default

            setattr(self, name, self._convert_value(value, field_type))

    def _env_names(
        self, name: str, alias: Optional[Union[str, AliasChoices]]
    ) -> List[str]:
        names = list(alias) if isinstance(alias, AliasChoices) else []
        if isinstance(alias, str):
            names.append(alias)
        names.append(f"{self.model_config.env_prefix}{name.upper()}")

        if not self.model_config.case_sensitive:
            names.extend(env_name.lower() for env_name in list(names))
        return names

    @staticmethod
    def _lookup(names: List[str], file_values: Dict[str, str]) -> Optional[str]:
        # Process environment beats the .env file for each candidate name
        for env_name in names:
            if env_name in os.environ:
                return os.environ[env_name]
            if env_name in file_values:
                return file_values[env_name]
        return None

    def _load_env_file(self, env_file_path: str) -> Dict[str, str]:
        """Read KEY=value lines from a .env file, ignoring comments."""
        env_path = Path(env_file_path)
        if not env_path.exists():
            return {}

        values = {}
        text = env_path.read_text(encoding=self.model_config.env_file_encoding)
        for line in text.splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip("\"'")
        return values

    @staticmethod
    def _convert_value(value: Any, target_type: Any) -> Any:
        """Coerce string values to bool or float fields."""
        if not isinstance(value, str):
            return value
        if target_type is bool:
            return value.lower() in ("true", "1", "yes", "on")
        if target_type is float:
            return float(value)
        return value
