"""
Run Configuration

Loads and validates the YAML file describing which stages to train and
with which variants and hyperparameters.

Example:
    model: artifacts/twpipe.json
    seed: 1234
    embedding-dim: 0
    postagger:
      train: true
      name: char-lstm-crf
      char-dim: 16
      char-hidden-dim: 32
      char-n-layers: 1
      word-hidden-dim: 64
      word-n-layers: 1
      tag-dim: 8
"""

from pathlib import Path
from typing import Any, Dict

import yaml
from transformers.utils import logging

from .registry.variants import CATALOGS, PARSER, POSTAGGER, STAGES

logger = logging.get_logger(__name__)

DEFAULT_SEED = 1234
DEFAULT_DEVICE = "cpu"

GLOBAL_KEYS = {"model", "seed", "device", "embedding-dim"} | set(STAGES)
STAGE_KEYS = {"train", "name"}

# Stages that consume the global pretrained embedding width
EMBEDDING_STAGES = (POSTAGGER, PARSER)


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML configuration: {e}")
    return config if config is not None else {}


def normalize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fill defaults and copy the global ``embedding-dim`` into stage sections.

    Returns:
        New configuration dictionary; the input is not modified
    """
    normalized = dict(config)
    normalized.setdefault("seed", DEFAULT_SEED)
    normalized.setdefault("device", DEFAULT_DEVICE)
    for stage in STAGES:
        section = dict(normalized.get(stage) or {})
        section.setdefault("train", False)
        if stage in EMBEDDING_STAGES and "embedding-dim" in normalized:
            section.setdefault("embedding-dim", normalized["embedding-dim"])
        normalized[stage] = section
    return normalized


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate the configuration dictionary.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ValueError: If configuration is structurally invalid
        UnknownVariant: If a stage marked for training names an unknown variant
    """
    if not isinstance(config, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(config).__name__}")

    for key in config:
        if key not in GLOBAL_KEYS:
            logger.warning(f"Ignoring unknown configuration key '{key}'")

    for stage in STAGES:
        section = config.get(stage)
        if section is None:
            continue
        if not isinstance(section, dict):
            raise ValueError(f"Configuration section '{stage}' must be a mapping")

        catalog = CATALOGS[stage]
        known = set(STAGE_KEYS) | set(catalog.schema.fields)
        for _, group in catalog.schema.groups:
            known.update(group)
        # vocabulary sizes always come from the vocabulary
        known -= set(catalog.schema.vocabulary_fields())
        for key in section:
            if key not in known:
                logger.warning(f"Ignoring unknown key '{key}' in '{stage}' section")

        if section.get("train"):
            if "name" not in section:
                raise ValueError(f"Stage '{stage}' is marked for training but has no variant name")
            catalog.lookup(section["name"])
