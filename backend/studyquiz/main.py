from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from .context import AppContext
from .embeddings import FaceEmbedder
from .errors import install_error_handlers
from .gemini_client import TextGenerator
from .logging_config import configure_logging, install_request_logging
from .settings import Settings, settings as default_settings
from .routers import health
from .routers import auth
from .routers import users
from .routers import subjects
from .routers import questions
from .routers import face_recognition


def create_app(
	settings: Optional[Settings] = None,
	*,
	llm: Optional[TextGenerator] = None,
	embedder: Optional[FaceEmbedder] = None,
	configure_logs: bool = True,
) -> FastAPI:
	settings = settings or default_settings
	if configure_logs:
		configure_logging(settings)
	ctx = AppContext.build(settings, llm=llm, embedder=embedder)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		ctx.open()
		try:
			yield
		finally:
			await ctx.close()

	app = FastAPI(title="StudyQuiz API", lifespan=lifespan)
	app.state.ctx = ctx
	app.add_middleware(
		CORSMiddleware,
		allow_origins=settings.cors_origins,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	install_request_logging(app)
	install_error_handlers(app)

	app.include_router(health.router)
	app.include_router(auth.router)
	app.include_router(users.router)
	app.include_router(subjects.router)
	app.include_router(questions.router)
	app.include_router(face_recognition.router)

	@app.get("/", include_in_schema=False)
	async def redirect_root_to_docs():
		return RedirectResponse(url="/docs")

	return app


app = create_app()
