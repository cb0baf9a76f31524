"""
Loader for the versioned JSON configuration tables
"""
import json
import logging
from pathlib import Path
from typing import Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..config import settings
from ..errors import ConfigurationError
from ..models.documents import DocumentCatalogConfig
from ..models.eligibility import E1EligibilityConfig, VisaProfilesConfig
from ..models.rules import RuleSetConfig

logger = logging.getLogger(__name__)

ConfigModel = TypeVar("ConfigModel", bound=BaseModel)


def load_config(path: Union[str, Path], model: Type[ConfigModel]) -> ConfigModel:
    """
    Load a JSON configuration table and validate it

    Args:
        path: Location of the JSON file
        model: Pydantic model describing the table

    Returns:
        Validated configuration instance

    Raises:
        ConfigurationError: when the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}", {"path": str(path)})
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Configuration file is not valid JSON: {path}", {"path": str(path), "error": str(e)})

    try:
        config = model.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid {model.__name__} in {path}",
            {"path": str(path), "errors": e.errors(include_url=False, include_context=False)}
        )

    logger.info(f"Loaded {model.__name__} version {getattr(config, 'version', '?')} from {path.name}")
    return config


def load_rule_set(path: Optional[Union[str, Path]] = None) -> RuleSetConfig:
    return load_config(path or settings.config_path(settings.rules_file), RuleSetConfig)


def load_document_catalog(path: Optional[Union[str, Path]] = None) -> DocumentCatalogConfig:
    return load_config(path or settings.config_path(settings.documents_file), DocumentCatalogConfig)


def load_e1_eligibility(path: Optional[Union[str, Path]] = None) -> E1EligibilityConfig:
    return load_config(path or settings.config_path(settings.e1_eligibility_file), E1EligibilityConfig)


def load_visa_profiles(path: Optional[Union[str, Path]] = None) -> VisaProfilesConfig:
    return load_config(path or settings.config_path(settings.visa_profiles_file), VisaProfilesConfig)
