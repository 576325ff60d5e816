"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from debugbin.core.base import BaseConfig, BaseState
from debugbin.core.log import Logger
from debugbin.core.result import BuildResult
from debugbin.core.yaml_settings import YamlWithIncludesSettingsSource

# Modules reachable from templates in YAML files, e.g.
# {platformdirs.user_state_dir}, {os.getcwd}, {Path.home}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class BuildConfig(BaseConfig):
    """Build tool invocation."""

    command: str = Field(
        default="cargo test --no-run --message-format=json",
        description=(
            "Command that compiles the tests without running them. "
            "Drop --message-format=json for plain log output"
        ),
    )
    tool: str | None = Field(
        default=None,
        description=(
            "Executable checked on PATH before running; defaults to "
            "the first word of the command"
        ),
    )
    workdir: Path = Field(
        default_factory=Path.cwd,
        description="Project root the build runs in",
    )
    scratch_dir: Path | None = Field(
        default=None,
        description=(
            "Directory for the temporary output capture file "
            "(system temp dir when unset)"
        ),
    )
    log_dir: Path | None = Field(
        default=None,
        description=(
            "Keep a timestamped copy of each build's output here "
            "(supports {config.*} templates)"
        ),
    )
    output_level: str = Field(
        default="spew",
        description="Log level used to echo build output line by line",
    )


class ExtractConfig(BaseConfig):
    """How the test binary path is found in build output."""

    format: Literal["auto", "json", "text"] = Field(
        default="auto",
        description=(
            "'json' for line-delimited records, 'text' for plain logs, "
            "'auto' to decide from the first non-blank line"
        ),
    )
    marker: str = Field(
        default="Executable",
        description="Substring identifying binary lines in text output",
    )
    selection: Literal["first", "last"] = Field(
        default="first",
        description="Which candidate wins when several match",
    )
    require_match: bool = Field(
        default=True,
        description=(
            "Fail when no binary is found instead of exiting cleanly "
            "with a warning"
        ),
    )


class OutputConfig(BaseConfig):
    """Where the discovered path is persisted for the editor."""

    path_file: Path = Field(
        default=Path("{config.build.workdir}/.nvim/test_binary_path.txt"),
        description=(
            "File overwritten with the binary path after each "
            "successful build_tests run"
        ),
    )


class ProgramConfig(BaseConfig):
    """Application (non-test) binary built for a debug launch."""

    build_command: str = Field(
        default="cargo build",
        description="Command that builds the application",
    )
    binary: Path | None = Field(
        default=None,
        description=(
            "Binary produced by build_command, relative to "
            "build.workdir (e.g. target/debug/myapp); defaults to "
            "target/debug/<package name> from Cargo.toml"
        ),
    )


class DebuggerConfig(BaseConfig):
    """Companion debug adapter started by the editor."""

    name: str = Field(
        default="codelldb",
        description="Adapter id the editor registers",
    )
    command: str = Field(
        default="codelldb",
        description="Adapter executable name or absolute path",
    )
    search_dirs: list[Path] = Field(
        default_factory=list,
        description=(
            "Extra directories searched after PATH, e.g. the "
            "editor's package manager bin directory"
        ),
    )
    args: list[str] = Field(
        default_factory=lambda: ["--port", "${port}"],
        description="Adapter arguments; ${port} is the listen port",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    build: BuildConfig = Field(
        default_factory=BuildConfig,
        description="Build tool invocation"
    )
    extract: ExtractConfig = Field(
        default_factory=ExtractConfig,
        description="Binary path extraction"
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Persisted binary path"
    )
    program: ProgramConfig = Field(
        default_factory=ProgramConfig,
        description="Application binary for debug launches"
    )
    debugger: DebuggerConfig = Field(
        default_factory=DebuggerConfig,
        description="Debug adapter executable"
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir("debugbin"))
        ),
        description=(
            "Root directory for log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    def setup_logger(self) -> None:
        """Install the global logger from the loaded settings.

        Called by State once templates in log paths are substituted.
        """
        from debugbin.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        setup_logger(
            log_root=self.log_root,
            run_name=self.build.workdir.name or "debugbin",
            console=self.logger.console,
            file=self.logger.file,
            level=self.logger.level,
        )

    def close(self):
        """Close the global logger as well as the config children."""
        from debugbin.core.log import logger
        logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class BuildState(BaseState):
    """State of one build-and-extract workflow."""

    result: BuildResult | None = Field(
        default=None,
        description="Output of the build command",
    )
    binary_path: str | None = Field(
        default=None,
        description="Path extracted from the build output",
    )
    persist: bool = Field(
        default=True,
        description="Write binary_path to output.path_file",
    )
    status: str = Field(
        default="pending",
        description=(
            "pending, built, build-failed, extracted, no-match, "
            "persisted"
        ),
    )


class Runtime(BaseModel):
    """All runtime state, one section per workflow."""

    build: BuildState = Field(
        default_factory=BuildState,
        description="Build workflow runtime state"
    )


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration and runtime state passed through workflows.

    Loaded, in priority order, from init arguments (or the CLI when run
    through CliApp), YAML files, .env and DEBUGBIN_* environment
    variables.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)"
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during workflow execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="debugbin.yaml",
        env_file=".env",
        env_prefix="DEBUGBIN_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """init > YAML (with includes) > .env > environment > secrets."""
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Replace {config.*} and {module.attr} templates in all string
        and Path values, then start logging."""
        self._substitute_recursive(self)
        self.config.setup_logger()
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            new = self._substitute_string(value)
            return value if new == value else new
        elif isinstance(value, Path):
            new = self._substitute_string(str(value))
            return value if new == str(value) else Path(new)
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with the referenced values.

        Unresolvable templates, such as the editor's ${port}, are left
        untouched.

        Examples:
            "{config.build.workdir}/.nvim/test_binary_path.txt"
            -> "/home/user/app/.nvim/test_binary_path.txt"
            "{platformdirs.user_log_dir}"
            -> "~/.local/state/debugbin/log"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            module = parts[0] if parts[0] in TEMPLATE_NAMESPACE else None
            if module:
                obj = TEMPLATE_NAMESPACE[module]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    if module == 'platformdirs':
                        obj = obj('debugbin', appauthor=False)
                    else:
                        obj = obj()
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'(?<!\$)\{([A-Za-z_][A-Za-z_.]*)\}', replace_template, value)


__all__ = ["State", "Config", "BaseConfig", "BaseState"]
