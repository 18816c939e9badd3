from __future__ import annotations
from datetime import datetime, timezone
from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base


Base = declarative_base()


def utcnow() -> datetime:
	# Naive UTC, matching what SQLite hands back
	return datetime.now(timezone.utc).replace(tzinfo=None)


def make_engine(database_url: str) -> Engine:
	connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
	return create_engine(database_url, connect_args=connect_args, future=True)


def make_session_factory(engine: Engine) -> sessionmaker:
	return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def get_context(request: Request):
	return request.app.state.ctx


def get_db(ctx=Depends(get_context)) -> Iterator[Session]:
	db = ctx.session_factory()
	try:
		yield db
	finally:
		db.close()
