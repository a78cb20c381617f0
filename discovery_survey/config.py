import json
import logging
import os
from dataclasses import asdict, fields
from typing import Dict, Optional

from dotenv import load_dotenv

from .datamodel import EMPTY_GENERATION_POLICIES, SAMPLE_POLICIES, SurveyConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "DISCOVERY_SURVEY_"
TRUTHY = {"1", "true", "yes", "y", "on"}


class ConfigManager:
    """
    Loads and saves SurveyConfig as JSON, with DISCOVERY_SURVEY_* environment
    overrides applied on top of the file (or of the defaults).
    """

    @staticmethod
    def load_config_from_json(config_path: str) -> SurveyConfig:
        """Load configuration from JSON file."""
        with open(config_path, "r") as f:
            data = json.load(f)
        return ConfigManager.dict_to_config(data)

    @staticmethod
    def dict_to_config(data: Dict) -> SurveyConfig:
        known = {f.name for f in fields(SurveyConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        defaults = SurveyConfig()
        config = SurveyConfig(
            **{
                k: ConfigManager._coerce(k, getattr(defaults, k), v, k)
                for k, v in data.items()
                if k in known
            }
        )
        ConfigManager.validate(config)
        return config

    @staticmethod
    def _coerce(name: str, default, value, source: str):
        """Convert a JSON or environment value to the field's type; ValueError if it can't."""
        if value is None and name == "sample_seed":
            return None
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value
            if isinstance(value, str):
                return value.strip().lower() in TRUTHY
        elif isinstance(default, int) or name == "sample_seed":
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            if isinstance(value, str):
                try:
                    return int(value.strip())
                except ValueError:
                    pass
        elif isinstance(default, float):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
            if isinstance(value, str):
                try:
                    return float(value.strip())
                except ValueError:
                    pass
        elif isinstance(value, str):
            return value
        raise ValueError(f"Invalid value for {source}: {value!r}")

    @staticmethod
    def config_to_dict(config: SurveyConfig) -> Dict:
        return asdict(config)

    @staticmethod
    def save_config_to_json(config: SurveyConfig, config_path: str):
        """Save configuration to JSON file."""
        with open(config_path, "w") as f:
            json.dump(ConfigManager.config_to_dict(config), f, indent=2)

    @staticmethod
    def apply_env_overrides(config: SurveyConfig) -> SurveyConfig:
        """Override fields from DISCOVERY_SURVEY_<FIELD> environment variables."""
        for f in fields(SurveyConfig):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None or not raw.strip():
                continue
            value = ConfigManager._coerce(
                f.name, f.default, raw.strip(), ENV_PREFIX + f.name.upper()
            )
            setattr(config, f.name, value)
        ConfigManager.validate(config)
        return config

    @staticmethod
    def validate(config: SurveyConfig):
        for name in (
            "generation_temperature",
            "critique_temperature",
            "analysis_temperature",
            "synthetic_temperature",
        ):
            value = getattr(config, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if config.min_sample_threshold < 1:
            raise ValueError("min_sample_threshold must be at least 1")
        if config.max_analyzed_responses < 1:
            raise ValueError("max_analyzed_responses must be at least 1")
        if config.question_count < 1:
            raise ValueError("question_count must be at least 1")
        if config.min_answer_length < 0:
            raise ValueError("min_answer_length must not be negative")
        if config.sample_policy not in SAMPLE_POLICIES:
            raise ValueError(
                f"sample_policy must be one of {SAMPLE_POLICIES}, got {config.sample_policy!r}"
            )
        if config.empty_generation_policy not in EMPTY_GENERATION_POLICIES:
            raise ValueError(
                f"empty_generation_policy must be one of {EMPTY_GENERATION_POLICIES}, "
                f"got {config.empty_generation_policy!r}"
            )
        if config.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")


def load_settings(config_path: Optional[str] = None) -> SurveyConfig:
    """Load .env, then the JSON config if given, then environment overrides."""
    load_dotenv()
    if config_path:
        config = ConfigManager.load_config_from_json(config_path)
    else:
        config = SurveyConfig()
    return ConfigManager.apply_env_overrides(config)


def resolve_api_key(api_key: Optional[str] = None) -> Optional[str]:
    if api_key:
        return api_key
    load_dotenv()
    return os.getenv("OPENAI_API_KEY")


__all__ = ["ConfigManager", "load_settings", "resolve_api_key", "ENV_PREFIX"]
