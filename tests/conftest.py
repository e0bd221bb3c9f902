"""Shared fixtures for statusline tests."""

import json
from pathlib import Path

import pytest

from statusline.core import StatuslineConfig
from statusline.state import InMemoryStorage


def write_entry(file_path, original, content):
    return {"toolUseResult": {"filePath": str(file_path), "originalFile": original, "content": content}}


def edit_entry(file_path, old_string, new_string):
    return {"toolUseResult": {"filePath": str(file_path), "oldString": old_string, "newString": new_string}}


class Transcript:
    """Append-only JSONL transcript on disk."""

    def __init__(self, path: Path):
        self.path = path
        self.path.touch()

    def append(self, *entries) -> "Transcript":
        with open(self.path, "a", encoding="utf-8") as f:
            for entry in entries:
                line = entry if isinstance(entry, str) else json.dumps(entry)
                f.write(line + "\n")
        return self

    def append_raw(self, text: str) -> "Transcript":
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(text)
        return self

    def truncate(self) -> "Transcript":
        self.path.write_text("")
        return self

    def __str__(self) -> str:
        return str(self.path)


@pytest.fixture
def transcript(tmp_path):
    """Create an empty transcript file."""
    return Transcript(tmp_path / "session.jsonl")


@pytest.fixture
def workdir(tmp_path):
    """Directory for files the transcript refers to."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def plans_dir(tmp_path):
    path = tmp_path / "claude" / "plans"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def memory_storage():
    return InMemoryStorage()


@pytest.fixture
def config(tmp_path):
    """Configuration rooted in a temporary Claude home."""
    claude_home = tmp_path / "claude"
    claude_home.mkdir(exist_ok=True)
    return StatuslineConfig(claude_home=str(claude_home))
