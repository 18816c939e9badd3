from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .cleanup import purge_stale_sessions
from .db import Base, make_engine, make_session_factory
from .embeddings import FaceEmbedder, RandomFaceEmbedder
from .gemini_client import GeminiClient, TextGenerator
from .seed import seed_catalog
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
	"""Process-wide handles shared by all requests.

	Built once by ``create_app`` and reachable from handlers through ``app.state.ctx``.
	"""

	settings: Settings
	engine: Engine
	session_factory: sessionmaker
	llm: Optional[TextGenerator]
	embedder: FaceEmbedder

	@classmethod
	def build(
		cls,
		settings: Settings,
		*,
		llm: Optional[TextGenerator] = None,
		embedder: Optional[FaceEmbedder] = None,
	) -> "AppContext":
		engine = make_engine(settings.database_url)
		if llm is None and settings.gemini_api_key:
			llm = GeminiClient(settings)
		return cls(
			settings=settings,
			engine=engine,
			session_factory=make_session_factory(engine),
			llm=llm,
			embedder=embedder or RandomFaceEmbedder(),
		)

	def open(self) -> None:
		Base.metadata.create_all(bind=self.engine)
		with self.session_factory() as db:
			removed = purge_stale_sessions(db, max_age_minutes=self.settings.access_token_expire_minutes)
			if removed:
				logger.info("purged %d stale auth sessions", removed)
			if self.settings.seed_catalog:
				seed_catalog(db)
		if self.llm is None:
			logger.warning("GEMINI_API_KEY not set; question generation and code grading are disabled")

	async def close(self) -> None:
		if self.llm is not None:
			await self.llm.aclose()
		self.engine.dispose()
