"""
Agent options.

Defaults come from the environment (.env at the project root is loaded on
import), and each agent's options mapping overrides them.

    MANGA_CRAWLER_TIMEOUT_MS   navigation / launch bound in milliseconds
    MANGA_CRAWLER_USER_AGENT   User-Agent for browser tabs and HTTP client
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
load_dotenv(project_root / '.env')

logger = logging.getLogger('manga_crawler.config')

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) '
    'AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/120.0.0.0 Safari/537.36'
)

TIMEOUT_KEYS = ('timeout_ms', 'timeout')
USER_AGENT_KEYS = ('user_agent',)


def _to_timeout(value: Any, fallback: int) -> int:
    try:
        timeout = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid timeout {value!r}, using {fallback} ms")
        return fallback
    if timeout <= 0:
        logger.warning(f"Non-positive timeout {timeout}, using {fallback} ms")
        return fallback
    return timeout


def _first(options: Mapping[str, Any], keys) -> Optional[Any]:
    for key in keys:
        if options.get(key) is not None:
            return options[key]
    return None


@dataclass(frozen=True)
class AgentOptions:
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> 'AgentOptions':
        timeout = os.environ.get('MANGA_CRAWLER_TIMEOUT_MS', '').strip()
        user_agent = os.environ.get('MANGA_CRAWLER_USER_AGENT', '').strip()
        return cls(
            timeout_ms=_to_timeout(timeout, DEFAULT_TIMEOUT_MS) if timeout else DEFAULT_TIMEOUT_MS,
            user_agent=user_agent or DEFAULT_USER_AGENT,
        )

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> 'AgentOptions':
        """
        Build options from a loose mapping; unknown keys are ignored.

        Args:
            options: e.g. {'timeout_ms': 20000, 'user_agent': '...'}

        Returns:
            AgentOptions with environment defaults for missing keys
        """
        defaults = cls.from_env()
        if not options:
            return defaults

        timeout_ms = defaults.timeout_ms
        timeout = _first(options, TIMEOUT_KEYS)
        if timeout is not None:
            timeout_ms = _to_timeout(timeout, defaults.timeout_ms)

        user_agent = str(_first(options, USER_AGENT_KEYS) or '').strip()

        return cls(
            timeout_ms=timeout_ms,
            user_agent=user_agent or defaults.user_agent,
        )
