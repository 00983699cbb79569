"""
DaveMode Database Schema Definitions

Raw SQL schema for SQLite and PostgreSQL.
"""

SCHEMA_SQLITE = """
CREATE TABLE IF NOT EXISTS interactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    interaction_id TEXT UNIQUE NOT NULL,
    type TEXT NOT NULL,
    project_type TEXT,
    project_context TEXT,
    requirements TEXT,
    strategy TEXT,
    result TEXT,
    success INTEGER,
    timestamp DATETIME NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_interactions_project_type ON interactions(project_type, timestamp);

CREATE TABLE IF NOT EXISTS patterns (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    pattern_type TEXT NOT NULL,
    project_type TEXT NOT NULL,
    pattern_data TEXT NOT NULL,
    success_rate REAL DEFAULT 0,
    uses INTEGER DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(pattern_type, project_type)
);

CREATE TABLE IF NOT EXISTS agent_performance (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    agent_name TEXT NOT NULL,
    task_type TEXT NOT NULL,
    project_type TEXT NOT NULL DEFAULT '',
    uses INTEGER DEFAULT 0,
    successes INTEGER DEFAULT 0,
    success_rate REAL DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(agent_name, task_type, project_type)
);

CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    technologies TEXT,
    features TEXT,
    files TEXT,
    validation TEXT,
    timestamp DATETIME NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS clarification_requests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    interaction_id TEXT UNIQUE NOT NULL,
    type TEXT NOT NULL,
    original_interaction_id TEXT,
    requirements TEXT,
    context TEXT,
    files TEXT,
    project_context TEXT,
    questions TEXT NOT NULL,
    ambiguities TEXT,
    contextual_matches TEXT,
    is_follow_up INTEGER DEFAULT 0,
    timestamp DATETIME NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS clarification_responses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    interaction_id TEXT UNIQUE NOT NULL,
    responses TEXT NOT NULL,
    updated_requirements TEXT,
    updated_project_context TEXT,
    timestamp DATETIME NOT NULL,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""

SCHEMA_POSTGRES = """
CREATE TABLE IF NOT EXISTS interactions (
    id SERIAL PRIMARY KEY,
    interaction_id VARCHAR(255) UNIQUE NOT NULL,
    type VARCHAR(50) NOT NULL,
    project_type VARCHAR(100),
    project_context JSONB,
    requirements JSONB,
    strategy JSONB,
    result JSONB,
    success BOOLEAN,
    timestamp TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_interactions_project_type ON interactions(project_type, timestamp);

CREATE TABLE IF NOT EXISTS patterns (
    id SERIAL PRIMARY KEY,
    pattern_type VARCHAR(50) NOT NULL,
    project_type VARCHAR(100) NOT NULL,
    pattern_data JSONB NOT NULL,
    success_rate DOUBLE PRECISION DEFAULT 0,
    uses INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(pattern_type, project_type)
);

CREATE TABLE IF NOT EXISTS agent_performance (
    id SERIAL PRIMARY KEY,
    agent_name VARCHAR(100) NOT NULL,
    task_type VARCHAR(50) NOT NULL,
    project_type VARCHAR(100) NOT NULL DEFAULT '',
    uses INTEGER DEFAULT 0,
    successes INTEGER DEFAULT 0,
    success_rate DOUBLE PRECISION DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(agent_name, task_type, project_type)
);

CREATE TABLE IF NOT EXISTS projects (
    id SERIAL PRIMARY KEY,
    project_id VARCHAR(255) UNIQUE NOT NULL,
    name VARCHAR(255) NOT NULL,
    type VARCHAR(100) NOT NULL,
    technologies JSONB,
    features JSONB,
    files JSONB,
    validation JSONB,
    timestamp TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS clarification_requests (
    id SERIAL PRIMARY KEY,
    interaction_id VARCHAR(255) UNIQUE NOT NULL,
    type VARCHAR(50) NOT NULL,
    original_interaction_id VARCHAR(255),
    requirements JSONB,
    context JSONB,
    files JSONB,
    project_context JSONB,
    questions JSONB NOT NULL,
    ambiguities JSONB,
    contextual_matches JSONB,
    is_follow_up BOOLEAN DEFAULT FALSE,
    timestamp TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS clarification_responses (
    id SERIAL PRIMARY KEY,
    interaction_id VARCHAR(255) UNIQUE NOT NULL,
    responses JSONB NOT NULL,
    updated_requirements JSONB,
    updated_project_context JSONB,
    timestamp TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""
