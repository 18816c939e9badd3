from __future__ import annotations
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol

from .models import FACE_DESCRIPTOR_LENGTH


@dataclass
class FaceDetection:
	descriptors: List[List[float]] = field(default_factory=list)
	confidence: float = 0.0

	@property
	def count(self) -> int:
		return len(self.descriptors)

	@property
	def descriptor(self) -> Optional[List[float]]:
		return self.descriptors[0] if self.descriptors else None


class FaceEmbedder(Protocol):
	def embed(self, image_path: Path) -> FaceDetection:
		...


class RandomFaceEmbedder:
	"""Simulated recognition: reports exactly one face with a random descriptor.

	Nothing is read from the image. Two uploads of the same photo produce unrelated
	vectors, so this is only useful to exercise the registration and login flows.
	"""

	def __init__(self, rng: Optional[random.Random] = None, length: int = FACE_DESCRIPTOR_LENGTH) -> None:
		self._rng = rng or random.Random()
		self.length = length

	def embed(self, image_path: Path) -> FaceDetection:
		descriptor = [self._rng.uniform(-1.0, 1.0) for _ in range(self.length)]
		confidence = 0.95 + self._rng.random() * 0.05
		return FaceDetection(descriptors=[descriptor], confidence=confidence)
