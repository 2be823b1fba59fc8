# setup_db.py
from db import Base, engine, SessionLocal
from models.badge import Badge, UserBadge
from models.game_score import GameScore
from models.lesson import Lesson
from models.lesson_completion import LessonCompletion
from models.streak_log import StreakLog
from models.user_progress import UserProgress

DEFAULT_BADGES = [
    {"slug": "first-lesson", "name": "First Step", "description": "Completed your first lesson",
     "icon": "🎯", "category": "progress", "requirement": {"lessonsCompleted": 1}, "xp_bonus": 50},
    {"slug": "streak-3", "name": "On a Roll", "description": "3 consecutive days of learning",
     "icon": "⚡", "category": "streak", "requirement": {"streak": 3}, "xp_bonus": 25},
    {"slug": "streak-7", "name": "Week Warrior", "description": "7 consecutive days of learning",
     "icon": "🔥", "category": "streak", "requirement": {"streak": 7}, "xp_bonus": 75},
    {"slug": "streak-30", "name": "Unstoppable", "description": "30 consecutive days of learning",
     "icon": "💎", "category": "streak", "requirement": {"streak": 30}, "xp_bonus": 500},
    {"slug": "level-5", "name": "Rising Star", "description": "Reached level 5",
     "icon": "⭐", "category": "mastery", "requirement": {"level": 5}, "xp_bonus": 100},
    {"slug": "level-10", "name": "LLM Engineer", "description": "Reached level 10",
     "icon": "🏆", "category": "mastery", "requirement": {"level": 10}, "xp_bonus": 500},
    {"slug": "xp-1000", "name": "XP Collector", "description": "Earned 1000 XP",
     "icon": "💰", "category": "progress", "requirement": {"totalXp": 1000}, "xp_bonus": 100},
]


def seed_badges(db):
    created = 0
    for data in DEFAULT_BADGES:
        if db.query(Badge).filter_by(slug=data["slug"]).first() is None:
            db.add(Badge(**data))
            created += 1
    db.commit()
    return created


if __name__ == "__main__":
    print('delete tables')
    Base.metadata.drop_all(bind=engine)
    print("📦 Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("🏅 Seeding badges...")
    db = SessionLocal()
    try:
        print(f"   created {seed_badges(db)} badges")
    finally:
        db.close()
    print("✅ Done.")
