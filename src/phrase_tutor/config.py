"""User configuration and logging setup."""
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationError, field_validator
from rich.logging import RichHandler

from phrase_tutor.errors import ConfigError
from phrase_tutor.models import AnswerMode, Direction

DEFAULT_CONFIG_PATH = str(Path.home() / ".phrase_tutor" / "config.yaml")


class LearnConfig(BaseModel):
    """Session settings read from the config file and overridden by CLI flags."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    direction: Direction = Direction.SOURCE_TO_TARGET
    shuffle: StrictBool = True
    answer_mode: AnswerMode = AnswerMode.EXACT
    difficulty: Optional[Literal["easy", "medium", "hard", "unset"]] = None
    remote_url: Optional[StrictStr] = None
    remote_timeout: float = Field(default=10.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    host: StrictStr = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("port", "remote_timeout", mode="before")
    @classmethod
    def reject_bool_numbers(cls, value):
        if isinstance(value, bool):
            raise ValueError("expected a number, not true or false")
        return value


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in e['loc']) or 'config'}: {e['msg']}" for e in error.errors()
    )


def config_from_dict(data: dict, base: LearnConfig | None = None) -> LearnConfig:
    """Overlay `data` onto `base`. Unknown keys are an error so typos surface."""
    base = base or LearnConfig()
    try:
        return LearnConfig.model_validate({**base.model_dump(), **data})
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {_describe(e)}") from e


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> LearnConfig:
    """Read the YAML config file; a missing file means defaults."""
    path = Path(config_path)
    if not path.exists():
        return LearnConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping of settings")
    return config_from_dict(data)


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
