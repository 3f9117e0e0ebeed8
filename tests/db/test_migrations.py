"""
Alembic migration tests.

Tests verify:
1. Alembic configuration exists and is correct
2. env.py references Base.metadata and imports every model
3. The initial migration creates every table the models define
"""

import os
import re

from src.models.base import Base

# Import all models to register with Base.metadata
import src.models  # noqa: F401


def project_root() -> str:
    return os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def versions_dir() -> str:
    return os.path.join(project_root(), "src", "db", "alembic", "versions")


# =============================================================================
# Alembic Configuration Tests
# =============================================================================

class TestAlembicConfig:
    """Verify Alembic configuration is correct."""

    def test_alembic_config_exists(self):
        """Verify alembic.ini exists at the project root."""
        alembic_ini = os.path.join(project_root(), "alembic.ini")
        assert os.path.isfile(alembic_ini), f"alembic.ini not found at {alembic_ini}"

        with open(alembic_ini, "r") as f:
            assert "script_location = src/db/alembic" in f.read()

    def test_alembic_env_imports_models(self):
        """Verify env.py references Base.metadata for autogenerate support."""
        env_py = os.path.join(project_root(), "src", "db", "alembic", "env.py")
        assert os.path.isfile(env_py), f"env.py not found at {env_py}"

        with open(env_py, "r") as f:
            content = f.read()

        assert "from src.models.base import Base" in content
        assert "target_metadata = Base.metadata" in content
        assert "from src.models.therapist import Therapist" in content
        assert "from src.models.client import Client" in content
        assert "from src.models.session import Session" in content
        assert "from src.models.therapy_note import TherapyNote" in content

    def test_single_root_migration(self):
        """Exactly one migration has no parent revision."""
        roots = []
        for name in os.listdir(versions_dir()):
            if not name.endswith(".py"):
                continue
            with open(os.path.join(versions_dir(), name), "r") as f:
                content = f.read()
            if re.search(r"^down_revision: .* = None$", content, re.MULTILINE):
                roots.append(name)

        assert len(roots) == 1

    def test_initial_migration_covers_all_tables(self):
        migration = os.path.join(versions_dir(), "4f2a9c1e7b30_create_practice_tables.py")
        with open(migration, "r") as f:
            content = f.read()

        created = set(re.findall(r"op\.create_table\('(\w+)'", content))
        assert created == set(Base.metadata.tables)
