"""
Card set loading.
"""

import logging
from pathlib import Path
from typing import Any, List, Union

import orjson

from .models import Answer, Prompt

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def expand_underscores(src: str, length: int) -> str:
    """
    Widen every blank ("_") in a prompt to `length` underscores.

    Raises:
        ValueError: if length is less than 1
    """
    if length < 1:
        raise ValueError(f"Blank length must be at least 1, got {length}")
    if length == 1:
        return src
    return src.replace("_", "_" * length)


def _load_entries(path: PathLike) -> List[Any]:
    entries = orjson.loads(Path(path).read_bytes())
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected a JSON array of cards")
    return entries


def parse_prompt(entry: Any, underscore_length: int = 1) -> Prompt:
    if isinstance(entry, str):
        content, n_answers = entry, 1
    elif isinstance(entry, dict) and "content" in entry:
        content, n_answers = entry["content"], int(entry.get("n_answers", 1))
    else:
        raise ValueError(f"Invalid prompt card: {entry!r}")
    if n_answers < 1:
        raise ValueError(f"Prompt card needs at least one answer: {entry!r}")
    return Prompt(expand_underscores(content, underscore_length), n_answers)


def parse_answer(entry: Any) -> Answer:
    if isinstance(entry, str):
        return Answer(entry)
    if isinstance(entry, dict) and "content" in entry:
        return Answer(entry["content"])
    raise ValueError(f"Invalid answer card: {entry!r}")


def load_prompts(path: PathLike, underscore_length: int = 1) -> List[Prompt]:
    """
    Load prompt cards from a JSON array.

    Entries are either strings or objects with "content" and an optional
    "n_answers" (default 1).
    """
    prompts = [parse_prompt(entry, underscore_length) for entry in _load_entries(path)]
    logger.info(f"Loaded {len(prompts)} prompts from {path}")
    return prompts


def load_answers(path: PathLike) -> List[Answer]:
    """Load answer cards from a JSON array of strings or {"content": ...} objects."""
    answers = [parse_answer(entry) for entry in _load_entries(path)]
    logger.info(f"Loaded {len(answers)} answers from {path}")
    return answers
