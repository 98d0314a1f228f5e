from __future__ import annotations

import sys
from typing import Optional

from .lib.env import DEFAULT_REPO_URL
from .main import main as core_main


def with_default_repo(argv: list[str]) -> list[str]:
    if any(a == "--repo-url" or a.startswith("--repo-url=") for a in argv):
        return list(argv)
    return [f"--repo-url={DEFAULT_REPO_URL}", *argv]


def main(argv: Optional[list[str]] = None) -> int:
    # Same CLI as the installer; only the repository default differs.
    return core_main(with_default_repo(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    raise SystemExit(main())
