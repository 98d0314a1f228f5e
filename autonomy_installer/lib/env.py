from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_REPO_URL = "https://github.com/lunigy/ai-autonomous-system.git"
API_KEY_ENV = "ANTHROPIC_API_KEY"
PLACEHOLDER_FILE = "README.md"
PLACEHOLDER_MESSAGE = "Initial commit"


@dataclass(frozen=True)
class Requirements:
    git: tuple[int, int] = (2, 30)
    python: tuple[int, int] = (3, 9)
    node: tuple[int, int] = (18, 0)


REQUIREMENTS = Requirements()


def api_key_present() -> bool:
    return bool(os.environ.get(API_KEY_ENV))
