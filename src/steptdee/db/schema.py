"""SQLite database schema definitions."""

# Stored in PRAGMA user_version; bump when a table definition changes
SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Single-user profile with static anthropometrics
CREATE TABLE IF NOT EXISTS profile (
    profile_id TEXT PRIMARY KEY,
    date_of_birth DATE,
    sex TEXT NOT NULL CHECK(sex IN ('male', 'female', 'other')),
    height_m REAL NOT NULL,
    weight_kg REAL NOT NULL,
    step_length_m REAL NOT NULL,
    bmr_formula TEXT NOT NULL DEFAULT 'mifflin',
    step_goal INTEGER NOT NULL DEFAULT 10000,
    formula_sex TEXT CHECK(formula_sex IN ('male', 'female') OR formula_sex IS NULL),
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Weight observations, at most one per calendar date
CREATE TABLE IF NOT EXISTS weight_log (
    date DATE PRIMARY KEY,
    weight_kg REAL NOT NULL
);

-- Derived daily summaries, produced only by synchronization
CREATE TABLE IF NOT EXISTS daily_summaries (
    date DATE PRIMARY KEY,
    steps INTEGER NOT NULL CHECK(steps >= 0),
    distance_km REAL NOT NULL,
    kcal_walk REAL NOT NULL,
    bmr_kcal REAL NOT NULL,
    tdee REAL NOT NULL
);
"""

DATA_TABLES = ("profile", "weight_log", "daily_summaries")


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
