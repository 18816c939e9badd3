"""Pull JSON values out of free-form model output.

Models wrap JSON in prose or markdown fences often enough that every call site needs
the same fallbacks; they all go through here.
"""
from __future__ import annotations
import json
import re
from typing import Any, Callable, Dict, List, Optional


class StructuredResponseError(ValueError):
	pass


_decoder = json.JSONDecoder()
_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def _candidates(text: str, opener: str):
	yield text.strip()
	for block in _FENCE.findall(text):
		yield block
	start = text.find(opener)
	while start != -1:
		try:
			value, _ = _decoder.raw_decode(text, start)
		except json.JSONDecodeError:
			pass
		else:
			yield value
		start = text.find(opener, start + 1)


def _extract(text: str, opener: str, kind: type, accept: Optional[Callable[[Any], bool]]) -> Any:
	if not isinstance(text, str) or not text:
		raise StructuredResponseError("empty model response")
	for candidate in _candidates(text, opener):
		if isinstance(candidate, str):
			try:
				candidate = json.loads(candidate)
			except ValueError:
				continue
		if isinstance(candidate, kind) and (accept is None or accept(candidate)):
			return candidate
	raise StructuredResponseError(f"no JSON {kind.__name__} found in model response")


def extract_json_object(text: str, accept: Optional[Callable[[Dict[str, Any]], bool]] = None) -> Dict[str, Any]:
	return _extract(text, "{", dict, accept)


def extract_json_array(text: str, accept: Optional[Callable[[List[Any]], bool]] = None) -> List[Any]:
	return _extract(text, "[", list, accept)
