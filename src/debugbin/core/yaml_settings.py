"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

PROJECT_CONFIG = "debugbin.yaml"


def default_config_file() -> Path:
    """Package defaults, always loaded first."""
    return Path(__file__).parent.parent / "defaults" / "default.yaml"


def user_config_file() -> Path:
    """Per-user config in the platform config directory."""
    return Path(user_config_dir("debugbin", appauthor=False)) / PROJECT_CONFIG


def cli_includes(argv: list[str]) -> list[str]:
    """Collect the values of every `--include FILE` in argv."""
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif argv[i].startswith("--include="):
            includes.append(argv[i].split("=", 1)[1])
        i += 1
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: and --include support.

    Deep merges, later wins:
        package defaults < user config < ./debugbin.yaml
        < the settings class yaml_file < --include files
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        """Read --include from sys.argv before pydantic parses it.

        Args:
            settings_cls: The Settings class being initialized
            yaml_file: Optional override for the base config file
        """
        includes = cli_includes(sys.argv)
        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike)) else list(base)
            ) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):
        """Load every config file that exists and deep merge them.

        Args:
            files: Base file and --include file path(s)
            deep_merge: Passed by newer pydantic-settings releases;
                files are always deep merged here

        Returns:
            Deep-merged dictionary of all loaded data
        """
        files_to_load = [
            default_config_file(),
            user_config_file(),
            Path(PROJECT_CONFIG),
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            for f in files:
                path = Path(f).expanduser()
                if path not in files_to_load:
                    files_to_load.append(path)

        result = {}
        for file_path in files_to_load:
            if file_path.is_file():
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)
        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a YAML file with its include: directives resolved.

        Included files are merged first so the including file wins.

        Raises:
            ValueError: If an include cycle is found
            FileNotFoundError: If an included file does not exist
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if "include" in data:
            includes = data.pop("include") or []
            if isinstance(includes, str):
                includes = [includes]

            merged = {}
            for inc in includes:
                inc_path = self._resolve_path(inc, filepath)
                merged = self._deep_merge(
                    merged,
                    self._load_file_recursive(inc_path, visited.copy()),
                )
            data = self._deep_merge(merged, data)

        return data

    @staticmethod
    def _resolve_path(include_path: str, relative_to: Path) -> Path:
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Merge override into a copy of base; override wins."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
