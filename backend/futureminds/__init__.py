"""FutureMinds gamified learning backend.

Loads environment variables from a local .env file so development runs
need no exported configuration. Variables already set in the environment
win over the file.
"""

from pathlib import Path

from dotenv import load_dotenv

__version__ = "0.1.0"


def _load_local_env():
    # Try backend/.env first, then the project root .env
    pkg_dir = Path(__file__).resolve().parent
    for candidate in (pkg_dir.parent / ".env", pkg_dir.parent.parent / ".env"):
        if candidate.exists():
            load_dotenv(dotenv_path=candidate, override=False)


_load_local_env()
