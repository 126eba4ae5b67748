"""Configuration for git-review.

Settings come from a JSON file, then environment variables override them:

    $GIT_REVIEW_CONFIG or $XDG_CONFIG_HOME/git-review/config.json
    GIT_REVIEW_COMMIT_LIMIT, GIT_REVIEW_PREVIEW_HEIGHT, GIT_REVIEW_PAGER,
    GIT_REVIEW_GIT_TIMEOUT, GIT_REVIEW_LOG_LEVEL, GIT_REVIEW_LOG_FILE
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

APP_NAME = "git-review"

ENV_OVERRIDES: Dict[str, str] = {
    "GIT_REVIEW_COMMIT_LIMIT": "commit_limit",
    "GIT_REVIEW_PREVIEW_HEIGHT": "preview_height",
    "GIT_REVIEW_PAGER": "pager",
    "GIT_REVIEW_GIT_TIMEOUT": "git_timeout",
    "GIT_REVIEW_LOG_LEVEL": "log_level",
    "GIT_REVIEW_LOG_FILE": "log_file",
}


class ReviewConfig(BaseModel):
    """User settings."""

    commit_limit: int = Field(default=20, gt=0)
    preview_height: int = Field(default=40, gt=0)
    pager: Optional[str] = None
    delta_args: List[str] = []
    fzf_args: List[str] = []
    git_timeout: Optional[float] = Field(default=None, gt=0)
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    model_config = {"extra": "ignore"}


def config_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    base = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME


def config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    explicit = env.get("GIT_REVIEW_CONFIG")
    if explicit:
        return Path(explicit)
    return config_dir(env) / "config.json"


def _read_file(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return {}
    return data


def _merged(layers: List[dict]) -> dict:
    data = {}
    for layer in layers:
        data.update(layer)
    return data


def load_config(env: Optional[Mapping[str, str]] = None) -> ReviewConfig:
    """Load settings, dropping invalid values one setting at a time.

    An invalid environment override falls back to the file's value, and an
    invalid file value falls back to the default. Other settings are kept.
    """
    env = os.environ if env is None else env
    layers = [
        _read_file(config_path(env)),
        {key: env[var] for var, key in ENV_OVERRIDES.items() if env.get(var)},
    ]

    while True:
        try:
            return ReviewConfig(**_merged(layers))
        except ValidationError as e:
            invalid = {err["loc"][0] for err in e.errors() if err["loc"]}

        dropped = False
        for key in invalid:
            for layer in reversed(layers):
                if key in layer:
                    logger.warning("Ignoring invalid setting %s=%r", key, layer.pop(key))
                    dropped = True
                    break
        if not dropped:
            logger.warning("Invalid configuration, using defaults")
            return ReviewConfig()
