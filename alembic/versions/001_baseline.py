"""Baseline schema: users, instances, submissions, best results, settings.

Revision ID: 001_baseline
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            email VARCHAR(320) NOT NULL UNIQUE,
            is_admin BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- TSP instances ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS tsp_instances (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(256) NOT NULL,
            type VARCHAR(32) NOT NULL DEFAULT 'TSP',
            comment TEXT NOT NULL DEFAULT '',
            dimension INTEGER NOT NULL CHECK (dimension > 0),
            edge_weight_type VARCHAR(32) NOT NULL DEFAULT 'EUC_2D',
            coordinates JSONB NOT NULL,
            distance_matrix JSONB NOT NULL,
            original_data TEXT NOT NULL,
            generation INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Submissions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS submissions (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            instance_id BIGINT NOT NULL REFERENCES tsp_instances(id) ON DELETE CASCADE,
            solution TEXT NOT NULL,
            objective_value DOUBLE PRECISION NOT NULL CHECK (objective_value >= 0),
            method VARCHAR(16) NOT NULL DEFAULT '',
            is_valid BOOLEAN NOT NULL DEFAULT TRUE,
            submitted_at TIMESTAMPTZ NOT NULL
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_submissions_user_id ON submissions(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_submissions_submitted_at ON submissions(submitted_at)")

    # --- Best results ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_best_results (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            best_submission_id BIGINT REFERENCES submissions(id) ON DELETE SET NULL,
            best_objective_value DOUBLE PRECISION,
            best_method VARCHAR(16) NOT NULL DEFAULT '',
            total_submissions INTEGER NOT NULL DEFAULT 0,
            last_improvement_at TIMESTAMPTZ
        )
    """)

    # --- System settings ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS system_settings (
            key VARCHAR(64) PRIMARY KEY,
            value TEXT NOT NULL DEFAULT ''
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS system_settings")
    op.execute("DROP TABLE IF EXISTS user_best_results")
    op.execute("DROP TABLE IF EXISTS submissions")
    op.execute("DROP TABLE IF EXISTS tsp_instances")
    op.execute("DROP TABLE IF EXISTS users")
