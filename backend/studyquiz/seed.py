from __future__ import annotations
import logging
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Subject, Topic

logger = logging.getLogger(__name__)

STARTER_CATALOG = [
	{
		"name": "Mathematics",
		"description": "Numbers, algebra, geometry and the reasoning that ties them together.",
		"icon": "➗",
		"color": "#6366F1",
		"category": "Mathematics",
		"difficulty_levels": ["beginner", "intermediate", "advanced"],
		"question_types": ["MCQ"],
		"popularity": 120,
		"topics": [
			("Linear Equations", "Solving and graphing equations of the first degree.", "beginner", 30, ["algebra"]),
			("Probability", "Counting, events and expected value.", "intermediate", 45, ["statistics"]),
		],
	},
	{
		"name": "Computer Science",
		"description": "Programming, data structures and how computers solve problems.",
		"icon": "💻",
		"color": "#10B981",
		"category": "Technology",
		"difficulty_levels": ["beginner", "intermediate", "advanced"],
		"question_types": ["MCQ", "coding", "sql", "network"],
		"popularity": 150,
		"topics": [
			("Python Basics", "Variables, control flow and functions in Python.", "beginner", 40, ["python", "programming"]),
			("SQL Queries", "Selecting, joining and aggregating relational data.", "intermediate", 45, ["sql", "databases"]),
			("Computer Networks", "Addressing, routing and the TCP/IP stack.", "advanced", 60, ["networking"]),
		],
	},
	{
		"name": "Physics",
		"description": "Motion, energy and the laws that govern the physical world.",
		"icon": "🔭",
		"color": "#F59E0B",
		"category": "Science",
		"difficulty_levels": ["beginner", "intermediate"],
		"question_types": ["MCQ"],
		"popularity": 80,
		"topics": [
			("Kinematics", "Describing motion with displacement, velocity and acceleration.", "beginner", 35, ["mechanics"]),
		],
	},
	{
		"name": "English",
		"description": "Grammar, vocabulary and reading comprehension.",
		"icon": "📖",
		"color": "#EF4444",
		"category": "Language",
		"difficulty_levels": ["beginner", "intermediate"],
		"question_types": ["MCQ"],
		"popularity": 60,
		"topics": [
			("Verb Tenses", "Choosing and forming the right tense.", "beginner", 25, ["grammar"]),
		],
	},
]


def seed_catalog(db: Session) -> int:
	"""Insert the starter subjects when the catalog is empty. Returns the number added."""
	if db.scalar(select(func.count(Subject.id))):
		return 0
	for entry in STARTER_CATALOG:
		data = dict(entry)
		topics = data.pop("topics")
		subject = Subject(**data)
		for name, description, level, minutes, tags in topics:
			subject.topics.append(Topic(name=name, description=description, difficulty_level=level, estimated_time=minutes, tags=tags))
		db.add(subject)
	db.flush()
	by_name = {s.name: s for s in db.scalars(select(Subject)).all()}
	# Computer Science builds on Mathematics
	by_name["Computer Science"].prerequisites.append(by_name["Mathematics"])
	db.commit()
	logger.info("seeded %d subjects", len(STARTER_CATALOG))
	return len(STARTER_CATALOG)
