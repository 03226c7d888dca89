from __future__ import annotations

# Table names; the crawler keeps everything in the connection's default schema
PLAYERS_TABLE: str = "players"
GAMES_TABLE: str = "games"
PLAYER_GAMES_TABLE: str = "player_played_game"

# Name of the Postgres enum type backing PlayerPlayedGame.end_result
END_RESULT_TYPE: str = "game_end_result"
