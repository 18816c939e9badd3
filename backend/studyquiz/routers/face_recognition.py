from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..db import get_context, get_db
from ..models import Account
from ..schemas import CompareRequest, account_brief, ok
from ..similarity import MATCH_THRESHOLD, similarity
from ..uploads import discard, save_face_image
from .auth import get_current_account

router = APIRouter(prefix="/api/face-recognition", tags=["face-recognition"])
logger = logging.getLogger(__name__)


@router.post("/detect")
async def detect(image: Optional[UploadFile] = File(default=None), ctx=Depends(get_context)):
	settings = ctx.settings
	path = await save_face_image(image, settings.upload_dir, settings.max_upload_bytes)
	try:
		detection = await run_in_threadpool(ctx.embedder.embed, path)
	except Exception:
		discard(path)
		raise
	return ok({
		"faceDescriptor": detection.descriptor,
		"faceCount": detection.count,
		"confidence": detection.confidence,
		"imagePath": str(path),
	}, "Face detected successfully")


@router.post("/compare")
async def compare(req: CompareRequest):
	score = similarity(req.descriptor1, req.descriptor2)
	return ok({"similarity": score, "isMatch": score > MATCH_THRESHOLD, "threshold": MATCH_THRESHOLD})


@router.post("/register")
async def register_face(
	image: Optional[UploadFile] = File(default=None),
	account: Account = Depends(get_current_account),
	db: Session = Depends(get_db),
	ctx=Depends(get_context),
):
	settings = ctx.settings
	path = await save_face_image(image, settings.upload_dir, settings.max_upload_bytes)
	try:
		detection = await run_in_threadpool(ctx.embedder.embed, path)
		if detection.count == 0:
			raise HTTPException(status_code=400, detail="No face detected in the image")
		if detection.count > 1:
			raise HTTPException(status_code=400, detail="Multiple faces detected. Please upload an image with only one face.")
		previous_avatar = account.avatar
		account.face_descriptor = list(detection.descriptor)
		account.avatar = str(path)
		db.commit()
	except Exception:
		db.rollback()
		discard(path)
		raise
	if previous_avatar and previous_avatar != account.avatar and _is_upload(previous_avatar, settings.upload_dir):
		discard(previous_avatar)
	db.refresh(account)
	return ok({
		"user": account_brief(account),
		"faceData": {"confidence": detection.confidence, "descriptorLength": len(detection.descriptor)},
	}, "Face registered successfully")


@router.delete("/register")
async def remove_face(account: Account = Depends(get_current_account), db: Session = Depends(get_db), ctx=Depends(get_context)):
	if account.avatar and _is_upload(account.avatar, ctx.settings.upload_dir):
		discard(account.avatar)
	account.face_descriptor = None
	account.avatar = None
	db.commit()
	db.refresh(account)
	return ok({"user": account_brief(account)}, "Face registration removed successfully")


@router.get("/status")
async def status(account: Account = Depends(get_current_account)):
	return ok({
		"hasFaceRegistered": bool(account.face_descriptor),
		"hasAvatar": bool(account.avatar),
		"avatarPath": account.avatar,
	})


def _is_upload(path: str, upload_dir: str) -> bool:
	# Avatars may also be external URLs set through the profile
	try:
		return Path(path).resolve().is_relative_to(Path(upload_dir).resolve())
	except (OSError, ValueError):
		return False
