"""Record store schema: submitted assessments and benchmark snapshots."""
import sqlite3

def init_schema(con: sqlite3.Connection) -> sqlite3.Connection:
    """Create the record store schema if it does not exist."""
    with con:
        cur = con.cursor()

        # Which of the two tables exist?
        have = {
            row[0] for row in cur.execute("""
                SELECT name FROM sqlite_master
                WHERE type='table' AND name IN ('assessments','benchmark_snapshots')
            """).fetchall()
        }

        if "assessments" not in have:
            cur.executescript("""
                CREATE TABLE assessments(
                    assessment_id         TEXT PRIMARY KEY,
                    created_at            TEXT NOT NULL,
                    questionnaire_version TEXT NOT NULL,
                    industry              TEXT,
                    company_size          TEXT,
                    region                TEXT,
                    org_meta_hash         TEXT,
                    total_score           REAL NOT NULL,
                    level                 INTEGER NOT NULL,
                    pillar_scores_json    TEXT NOT NULL,
                    answers_json          TEXT NOT NULL,
                    result_json           TEXT NOT NULL,
                    email_opt_in          BOOLEAN NOT NULL DEFAULT 0,
                    contact_email         TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_assess_created ON assessments(created_at);
                CREATE INDEX IF NOT EXISTS idx_assess_cohort ON assessments(industry, company_size, region);
                CREATE INDEX IF NOT EXISTS idx_assess_meta_hash ON assessments(org_meta_hash);
            """)

        if "benchmark_snapshots" not in have:
            # NULL never equals NULL in a UNIQUE constraint, so uniqueness is
            # enforced on a generated cohort key instead
            cur.executescript("""
                CREATE TABLE benchmark_snapshots(
                    snapshot_id          INTEGER PRIMARY KEY,
                    industry             TEXT,
                    size                 TEXT,
                    region               TEXT,
                    cohort_key           TEXT GENERATED ALWAYS AS (
                        COALESCE(industry, '*') || '|' ||
                        COALESCE(size, '*') || '|' ||
                        COALESCE(region, '*')
                    ) STORED,
                    period_end           TEXT NOT NULL,
                    average_score        REAL NOT NULL,
                    pillar_averages_json TEXT NOT NULL,
                    sample_size          INTEGER NOT NULL,
                    source               TEXT NOT NULL DEFAULT 'assessments',
                    UNIQUE(cohort_key, period_end)
                );

                CREATE INDEX IF NOT EXISTS idx_snap_lookup
                  ON benchmark_snapshots(cohort_key, period_end);
            """)
    return con
