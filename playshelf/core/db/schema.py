"""Database schema constants and SQL statements."""

GAMES_TABLE = """
CREATE TABLE IF NOT EXISTS games (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    provider_id INTEGER NOT NULL UNIQUE,
    name TEXT NOT NULL,
    slug TEXT,
    cover_url TEXT,
    release_date TEXT,
    rating REAL,
    franchise_name TEXT,
    summary TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

GENRES_TABLE = """
CREATE TABLE IF NOT EXISTS genres (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    provider_genre_id INTEGER UNIQUE
);
"""

GAME_GENRES_TABLE = """
CREATE TABLE IF NOT EXISTS game_genres (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_id INTEGER NOT NULL,
    genre_id INTEGER NOT NULL,
    FOREIGN KEY (game_id) REFERENCES games(id) ON DELETE CASCADE,
    FOREIGN KEY (genre_id) REFERENCES genres(id) ON DELETE CASCADE,
    UNIQUE(game_id, genre_id)
);
"""

PLATFORMS_TABLE = """
CREATE TABLE IF NOT EXISTS platforms (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    display_name TEXT NOT NULL,
    provider_platform_id INTEGER
);
"""

USER_GAMES_TABLE = """
CREATE TABLE IF NOT EXISTS user_games (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    game_id INTEGER NOT NULL,
    platform_id TEXT NOT NULL,
    owned INTEGER DEFAULT 1 NOT NULL,
    import_source TEXT,
    created_at TEXT NOT NULL,
    FOREIGN KEY (game_id) REFERENCES games(id) ON DELETE CASCADE,
    FOREIGN KEY (platform_id) REFERENCES platforms(id),
    UNIQUE(user_id, game_id, platform_id)
);
"""

USER_GAME_PROGRESS_TABLE = """
CREATE TABLE IF NOT EXISTS user_game_progress (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    game_id INTEGER NOT NULL,
    platform_id TEXT NOT NULL,
    status TEXT DEFAULT 'backlog' NOT NULL,
    completion_percentage REAL DEFAULT 0,
    FOREIGN KEY (game_id) REFERENCES games(id) ON DELETE CASCADE,
    FOREIGN KEY (platform_id) REFERENCES platforms(id),
    UNIQUE(user_id, game_id, platform_id)
);
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_game_genres_game ON game_genres(game_id);",
    "CREATE INDEX IF NOT EXISTS idx_user_games_user ON user_games(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_user_progress_user ON user_game_progress(user_id);",
]

# Creation order respects foreign keys
ALL_TABLES = [
    GAMES_TABLE,
    GENRES_TABLE,
    GAME_GENRES_TABLE,
    PLATFORMS_TABLE,
    USER_GAMES_TABLE,
    USER_GAME_PROGRESS_TABLE,
]
