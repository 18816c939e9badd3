from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_context, get_db, utcnow
from ..models import Account, AuthSession
from ..schemas import FaceLoginRequest, LoginRequest, RegisterRequest, account_payload, ok
from ..settings import Settings
from ..similarity import best_match

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _bcrypt_safe(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)


def create_access_token(settings: Settings, data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	delta = expires_delta or timedelta(minutes=max(settings.access_token_expire_minutes, 1))
	to_encode.update({"exp": datetime.now(timezone.utc) + delta})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def issue_token(db: Session, settings: Settings, account: Account, method: str) -> str:
	"""Open a server-side session for ``account`` and record the login."""
	session_id = uuid.uuid4().hex
	token = create_access_token(settings, {"sub": str(account.id), "jti": session_id})
	db.add(AuthSession(session_id=session_id, account_id=account.id))
	account.last_login = utcnow()
	account.last_login_method = method
	db.commit()
	db.refresh(account)
	return token


def _decode(token: str, settings: Settings) -> tuple[int, str]:
	credentials_exception = HTTPException(
		status_code=401, detail="Could not validate credentials", headers={"WWW-Authenticate": "Bearer"}
	)
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		subject: str | None = payload.get("sub")
		jti: str | None = payload.get("jti")
		if subject is None or jti is None:
			raise credentials_exception
		return int(subject), jti
	except (JWTError, ValueError):
		raise credentials_exception


def get_current_session(
	token: str = Depends(oauth2_scheme),
	db: Session = Depends(get_db),
	ctx=Depends(get_context),
) -> AuthSession:
	account_id, jti = _decode(token, ctx.settings)
	row = db.get(AuthSession, jti)
	# Revoked at logout, purged, or the account was deleted
	if row is None or row.account_id != account_id:
		raise HTTPException(status_code=401, detail="Could not validate credentials", headers={"WWW-Authenticate": "Bearer"})
	if not row.account.is_active:
		raise HTTPException(status_code=401, detail="Could not validate credentials", headers={"WWW-Authenticate": "Bearer"})
	row.last_activity_at = utcnow()
	db.commit()
	return row


def get_current_account(session: AuthSession = Depends(get_current_session)) -> Account:
	return session.account


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db), ctx=Depends(get_context)):
	existing = db.scalar(select(Account).where(Account.email == req.email))
	if existing:
		raise HTTPException(status_code=400, detail="User with this email already exists")
	prefs = req.preferences
	account = Account(
		email=req.email,
		password_hash=hash_password(req.password),
		first_name=req.first_name,
		last_name=req.last_name,
		face_descriptor=req.face_descriptor,
	)
	if prefs is not None:
		account.pref_subjects = list(prefs.subjects or [])
		account.preferred_question_types = list(prefs.preferred_question_types or [])
		if prefs.learning_pace:
			account.learning_pace = prefs.learning_pace
		if prefs.difficulty_level:
			account.difficulty_level = prefs.difficulty_level
		if prefs.daily_goal:
			account.daily_goal = prefs.daily_goal
	db.add(account)
	try:
		db.flush()
	except IntegrityError:
		# Lost a race with a concurrent registration for the same email
		db.rollback()
		raise HTTPException(status_code=400, detail="User with this email already exists")
	token = issue_token(db, ctx.settings, account, "password")
	logger.info("registered account %s", account.id)
	return ok({"user": account_payload(account), "token": token}, "User registered successfully")


@router.post("/login")
async def login(req: LoginRequest, db: Session = Depends(get_db), ctx=Depends(get_context)):
	account = db.scalar(select(Account).where(Account.email == req.email))
	# Same answer for unknown email, wrong password and deactivated account
	if account is None or not verify_password(req.password, account.password_hash) or not account.is_active:
		raise HTTPException(status_code=401, detail="Invalid credentials")
	token = issue_token(db, ctx.settings, account, "password")
	return ok({"user": account_payload(account), "token": token}, "Login successful")


@router.post("/face-login")
async def face_login(req: FaceLoginRequest, db: Session = Depends(get_db), ctx=Depends(get_context)):
	enrolled = db.scalars(select(Account).where(Account.face_descriptor.is_not(None))).all()
	match = best_match(req.face_descriptor, ((a, a.face_descriptor) for a in enrolled))
	if match is None or not match.item.is_active:
		raise HTTPException(status_code=401, detail="Face not recognized")
	account = match.item
	token = issue_token(db, ctx.settings, account, "face")
	return ok({"user": account_payload(account), "token": token, "similarity": match.score}, "Face login successful")


@router.post("/logout")
async def logout(session: AuthSession = Depends(get_current_session), db: Session = Depends(get_db)):
	db.delete(session)
	db.commit()
	return ok(message="Logged out successfully")


@router.get("/me")
async def me(account: Account = Depends(get_current_account)):
	return ok({"user": account_payload(account, with_login=True)})
