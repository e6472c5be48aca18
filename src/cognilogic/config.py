"""
Configuration for the reasoning engine.

Fixed dimensions live here as module constants. Tunable settings are read from
the environment (optionally seeded from a ``.env`` file) so experiments and
embedding hosts can resize the store without code changes.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from cognilogic.errors import InvalidInputError

EMBED_DIM = 64
HIDDEN_DIM = 128
MAX_ATOMS = 4096
MAX_RULES = 512
MAX_PREMISES = 16
RELEVANT_K = 10

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    """
    Runtime settings for a store/engine pair.

    The store preallocates a capacity x capacity float64 relation matrix, so
    memory grows quadratically with max_atoms: about 134 MB at the default
    4096. Lower max_atoms (or COGNILOGIC_MAX_ATOMS) for small hosts.

    Attributes:
        max_atoms: Capacity of the knowledge store
        max_rules: Maximum number of rules an engine accepts
        temperature: Softmax temperature of the attention primitive
        random_seed: Seed for embedding and weight initialisation (None = unseeded)
        log_level: Name of the logging level used by configure_logging
    """
    max_atoms: int = MAX_ATOMS
    max_rules: int = MAX_RULES
    temperature: float = 1.0
    random_seed: Optional[int] = None
    log_level: str = "WARNING"


def _read(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid value for {name}: {raw!r}") from exc


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build settings from the environment.

    Args:
        env_file: Optional path to a .env file loaded before reading variables.
            Variables already present in the environment take precedence.

    Returns:
        Settings with environment overrides applied

    Raises:
        InvalidInputError: If a variable cannot be parsed or is out of range
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file)
    else:
        load_dotenv()

    settings = Settings(
        max_atoms=_read("COGNILOGIC_MAX_ATOMS", int, MAX_ATOMS),
        max_rules=_read("COGNILOGIC_MAX_RULES", int, MAX_RULES),
        temperature=_read("COGNILOGIC_TEMPERATURE", float, 1.0),
        random_seed=_read("COGNILOGIC_SEED", int, None),
        log_level=_read("COGNILOGIC_LOG_LEVEL", str, "WARNING").upper(),
    )

    if settings.max_atoms <= 0:
        raise InvalidInputError(f"max_atoms must be positive, got {settings.max_atoms}")
    if settings.max_rules <= 0:
        raise InvalidInputError(f"max_rules must be positive, got {settings.max_rules}")
    if settings.temperature <= 0:
        raise InvalidInputError(f"temperature must be positive, got {settings.temperature}")

    return settings


def configure_logging(level: Union[str, int] = "WARNING"):
    """Attach a basic stream handler for the cognilogic loggers."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("cognilogic").setLevel(level)
