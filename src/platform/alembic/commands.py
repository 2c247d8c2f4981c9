"""Alembic command shortcuts exposed as project scripts."""

from pathlib import Path
import subprocess
import sys


# Get the path to alembic.ini
ALEMBIC_INI = Path(__file__).parent / 'alembic.ini'


def run_alembic(args: list[str]) -> int:
    """Run alembic command with config file."""
    return subprocess.call(['alembic', '-c', str(ALEMBIC_INI), *args])


def upgrade() -> int:
    """Upgrade database to latest migration."""
    return run_alembic(['upgrade', 'head'])


def downgrade() -> int:
    """Downgrade database by one migration."""
    return run_alembic(['downgrade', '-1'])


def make_migration() -> int:
    """Create a new migration based on model changes."""
    if len(sys.argv) < 2:
        sys.stderr.write("Usage: make-migration 'migration message'\n")
        return 1
    return run_alembic(['revision', '--autogenerate', '-m', ' '.join(sys.argv[1:])])
