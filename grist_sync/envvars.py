"""${NAME} placeholder expansion from the process environment."""
import logging
import os
import re
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def expand_env_value(value: Optional[str], environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Replace ``${NAME}`` placeholders with environment values.

    A variable that is unset (or empty) expands to "" and logs a warning.
    """
    if not value:
        return value
    env = os.environ if environ is None else environ

    def _substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        resolved = env.get(name)
        if not resolved:
            logger.warning(f"Environment variable {name} is not set")
            return ""
        return resolved

    return _PLACEHOLDER.sub(_substitute, value)


def expand_env_vars(values: Optional[Mapping[str, str]], environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Expand placeholders in every value of a header-like mapping."""
    return {key: expand_env_value(str(value), environ) for key, value in (values or {}).items()}
