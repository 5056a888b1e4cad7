"""
Editor settings.

Values come from an optional YAML file (config/editor.yaml) and can be
overridden per field with DFA_EDITOR_<FIELD> environment variables.
"""

import os
from functools import lru_cache
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import BaseModel, Field

log = structlog.get_logger()

ENV_PREFIX = "DFA_EDITOR_"
CONFIG_ENV = ENV_PREFIX + "CONFIG"


class EditorSettings(BaseModel):
    state_prefix: str = Field(default="S", description="Prefix of suggested state names")
    state_start: str = Field(default="0", description="First suffix tried for state names")
    symbol_prefix: str = ""
    symbol_start: str = "a"
    default_description: str = "Deterministic Finite Automaton."

    generation_service_url: str = "http://localhost:8080"
    generation_timeout: float = 120.0

    log_level: str = "INFO"
    log_dir: Optional[str] = None
    max_sessions: int = Field(default=100, ge=1)


def find_config_file() -> Optional[str]:
    explicit = os.environ.get(CONFIG_ENV)
    if explicit:
        return explicit

    possible_paths = [
        os.path.join(os.path.dirname(__file__), '..', 'config', 'editor.yaml'),
        os.path.join(os.getcwd(), 'config', 'editor.yaml'),
    ]
    for path in possible_paths:
        abs_path = os.path.abspath(path)
        if os.path.exists(abs_path):
            return abs_path
    return None


def env_overrides(environ=None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    overrides = {}
    for name in EditorSettings.model_fields:
        value = environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            overrides[name] = value
    return overrides


def load_settings(config_path: Optional[str] = None, environ=None) -> EditorSettings:
    config_path = config_path or find_config_file()
    values: Dict[str, Any] = {}
    if config_path:
        with open(config_path, 'r', encoding='utf-8') as f:
            values = yaml.safe_load(f) or {}
        if not isinstance(values, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        log.debug("settings_file_loaded", path=config_path)
    values.update(env_overrides(environ))
    return EditorSettings(**values)


@lru_cache(maxsize=1)
def get_settings() -> EditorSettings:
    return load_settings()
