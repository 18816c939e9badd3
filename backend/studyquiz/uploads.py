from __future__ import annotations
import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

logger = logging.getLogger(__name__)


async def save_face_image(file: Optional[UploadFile], upload_dir: str, max_bytes: int) -> Path:
	"""Validate an uploaded image and write it under ``<upload_dir>/faces``.

	Type and size are checked before anything touches the disk.
	"""
	if file is None or not file.filename:
		raise HTTPException(status_code=400, detail="No image file provided")
	if not (file.content_type or "").startswith("image/"):
		raise HTTPException(status_code=400, detail="Only image files are allowed")
	content = await file.read(max_bytes + 1)
	if len(content) > max_bytes:
		raise HTTPException(status_code=413, detail=f"Image exceeds the {max_bytes // (1024 * 1024)}MB limit")
	if not content:
		raise HTTPException(status_code=400, detail="No image file provided")

	target_dir = Path(upload_dir) / "faces"
	target_dir.mkdir(parents=True, exist_ok=True)
	suffix = Path(file.filename).suffix.lower()
	path = target_dir / f"face-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
	path.write_bytes(content)
	return path


def discard(path: Optional[str | Path]) -> None:
	if not path:
		return
	try:
		Path(path).unlink(missing_ok=True)
	except OSError as err:
		logger.warning("could not remove upload %s: %s", path, err)
