"""Database pool management and schema bootstrap for kinship-engine."""

from __future__ import annotations

import logging
import os

import asyncpg

logger = logging.getLogger("kinship_engine.db")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_DB_HOST = os.environ.get("KE_DB_HOST", "localhost")
_DB_PORT = os.environ.get("KE_DB_PORT", "5432")
_DB_USER = os.environ.get("KE_DB_USER", "postgres")
_DB_PASSWORD = os.environ.get("KE_DB_PASSWORD", "postgres")
_DB_NAME = os.environ.get("KE_DB_NAME", "kinship_engine")

DATABASE_URL = os.environ.get(
    "KE_DATABASE_URL",
    f"postgresql://{_DB_USER}:{_DB_PASSWORD}@{_DB_HOST}:{_DB_PORT}/{_DB_NAME}",
)

POOL_MIN_SIZE = int(os.environ.get("KE_DB_POOL_MIN", "2"))
POOL_MAX_SIZE = int(os.environ.get("KE_DB_POOL_MAX", "10"))

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS families (
    id          UUID PRIMARY KEY,
    name        TEXT NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS family_people (
    id          UUID PRIMARY KEY,
    family_id   UUID NOT NULL REFERENCES families(id) ON DELETE CASCADE,
    name        TEXT NOT NULL,
    gender      TEXT NOT NULL DEFAULT 'unknown'
                CHECK (gender IN ('male', 'female', 'other', 'unknown')),
    birth_date  DATE,
    photo_url   TEXT,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS family_relationships (
    id          UUID PRIMARY KEY,
    family_id   UUID NOT NULL REFERENCES families(id) ON DELETE CASCADE,
    type        TEXT NOT NULL CHECK (type IN ('FATHER', 'MOTHER', 'SPOUSE', 'SIBLING')),
    from_id     UUID NOT NULL REFERENCES family_people(id) ON DELETE CASCADE,
    to_id       UUID NOT NULL REFERENCES family_people(id) ON DELETE CASCADE,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
    CHECK (from_id <> to_id)
);

CREATE INDEX IF NOT EXISTS family_people_family_idx ON family_people (family_id);
CREATE INDEX IF NOT EXISTS family_relationships_family_idx ON family_relationships (family_id);

-- Editing rules, enforced again at write time so concurrent edits cannot slip past them
CREATE UNIQUE INDEX IF NOT EXISTS family_people_name_uq
    ON family_people (family_id, LOWER(BTRIM(name)));
CREATE UNIQUE INDEX IF NOT EXISTS family_relationships_edge_uq
    ON family_relationships (family_id, type, from_id, to_id);
CREATE UNIQUE INDEX IF NOT EXISTS family_relationships_symmetric_uq
    ON family_relationships (family_id, type, LEAST(from_id, to_id), GREATEST(from_id, to_id))
    WHERE type IN ('SPOUSE', 'SIBLING');
CREATE UNIQUE INDEX IF NOT EXISTS family_relationships_parent_uq
    ON family_relationships (to_id, type)
    WHERE type IN ('FATHER', 'MOTHER');
"""

# ---------------------------------------------------------------------------
# Pool
# ---------------------------------------------------------------------------

_pool: asyncpg.Pool | None = None


async def init_pool() -> asyncpg.Pool:
    """Create the global asyncpg connection pool and make sure the tables exist."""
    global _pool
    _pool = await asyncpg.create_pool(
        DATABASE_URL,
        min_size=POOL_MIN_SIZE,
        max_size=POOL_MAX_SIZE,
    )
    await _pool.execute(SCHEMA_SQL)
    logger.info("Schema ready")
    return _pool


async def close_pool() -> None:
    """Gracefully close the connection pool."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None


def get_pool() -> asyncpg.Pool:
    """Return the pool, raising if not initialized."""
    if _pool is None:
        raise RuntimeError("Database pool not initialized")
    return _pool


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------

async def get_stats() -> dict:
    """Row counts for the metrics endpoint."""
    p = get_pool()
    return {
        "total_families": await p.fetchval("SELECT COUNT(*) FROM families"),
        "total_people": await p.fetchval("SELECT COUNT(*) FROM family_people"),
        "total_relationships": await p.fetchval("SELECT COUNT(*) FROM family_relationships"),
    }
