# backend/logic/levels.py
"""Level math: XP is bucketed into fixed-width levels of XP_PER_LEVEL points."""

XP_PER_LEVEL = 500

LEVEL_TITLES = {
    1: "Prompt Curious",
    2: "Prompt Apprentice",
    3: "Token Tinkerer",
    4: "Context Crafter",
    5: "Embedding Explorer",
    6: "RAG Rookie",
    7: "Vector Voyager",
    8: "Pipeline Pioneer",
    9: "Agent Architect",
    10: "LLM Engineer",
}

MAX_TITLE = "LLM Master"


def level_for_xp(xp: int) -> int:
    # Not clamped: negative XP yields a level <= 0
    return xp // XP_PER_LEVEL + 1


def title_for_level(level: int) -> str:
    return LEVEL_TITLES.get(level, MAX_TITLE)


def xp_for_next_level(level: int) -> int:
    return level * XP_PER_LEVEL


def xp_progress_in_level(xp: int) -> int:
    return xp % XP_PER_LEVEL


def xp_progress_percent(xp: int) -> int:
    return round(xp_progress_in_level(xp) / XP_PER_LEVEL * 100)
