from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..grading import account_stats
from ..models import Account
from ..schemas import (
	FaceDescriptorRequest,
	PasswordChange,
	PreferencesIn,
	ProfileUpdate,
	account_brief,
	account_payload,
	ok,
	preferences_of,
	progress_of,
)
from .auth import get_current_account, hash_password, verify_password

router = APIRouter(prefix="/api/user", tags=["user"])
logger = logging.getLogger(__name__)


@router.get("/profile")
async def get_profile(account: Account = Depends(get_current_account)):
	return ok({"user": account_payload(account, with_login=True, with_created=True)})


@router.put("/profile")
async def update_profile(req: ProfileUpdate, account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
	if req.first_name:
		account.first_name = req.first_name
	if req.last_name:
		account.last_name = req.last_name
	if req.avatar:
		account.avatar = str(req.avatar)
	db.commit()
	db.refresh(account)
	return ok({"user": account_payload(account)}, "Profile updated successfully")


@router.get("/preferences")
async def get_preferences(account: Account = Depends(get_current_account)):
	return ok({"preferences": preferences_of(account)})


@router.put("/preferences")
async def update_preferences(req: PreferencesIn, account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
	if req.subjects:
		account.pref_subjects = list(req.subjects)
	if req.learning_pace:
		account.learning_pace = req.learning_pace
	if req.difficulty_level:
		account.difficulty_level = req.difficulty_level
	if req.preferred_question_types:
		account.preferred_question_types = list(req.preferred_question_types)
	if req.daily_goal:
		account.daily_goal = req.daily_goal
	db.commit()
	db.refresh(account)
	return ok({"preferences": preferences_of(account)}, "Preferences updated successfully")


@router.get("/progress")
async def get_progress(account: Account = Depends(get_current_account)):
	return ok({"progress": progress_of(account), "stats": account_stats(account)})


@router.post("/face-register")
async def register_face(req: FaceDescriptorRequest, account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
	account.face_descriptor = list(req.face_descriptor)
	db.commit()
	db.refresh(account)
	return ok({"user": account_brief(account)}, "Face registered successfully")


@router.delete("/face-register")
async def remove_face(account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
	account.face_descriptor = None
	db.commit()
	db.refresh(account)
	return ok({"user": account_brief(account)}, "Face registration removed successfully")


@router.put("/password")
async def change_password(req: PasswordChange, account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
	if not verify_password(req.current_password, account.password_hash):
		raise HTTPException(status_code=400, detail="Current password is incorrect")
	account.password_hash = hash_password(req.new_password)
	db.commit()
	return ok(message="Password changed successfully")


@router.delete("/account")
async def delete_account(account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
	logger.info("deleting account %s", account.id)
	db.delete(account)
	db.commit()
	return ok(message="Account deleted successfully")
