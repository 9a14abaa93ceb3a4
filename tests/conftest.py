"""Shared fixtures: a stand-in OpenAI client and sample model payloads."""
import json
from types import SimpleNamespace

import pytest

from briefdesk.models import Brief, User
from briefdesk.services.ai_service import DesignAIService
from briefdesk.services.session_service import AppContext


class FakeCompletions:
    """Replays queued replies; an Exception in the queue is raised instead."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeOpenAI:
    def __init__(self, *replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)

    def queue(self, *replies):
        self.completions.replies.extend(replies)


def brief_payload(**overrides) -> dict:
    data = {
        "project_name": "Morning Brew Launch",
        "company_name": "Bean There",
        "industry": "Restaurants & Cafés",
        "about_company": "A neighbourhood café roasting its own beans.",
        "target_audience": "Young professionals commuting to work",
        "project_goal": "Announce the new breakfast menu",
        "required_deliverables": ["Instagram post 1080x1080", "Story 1080x1920"],
        "style_preferences": "Warm, minimal, hand-drawn accents",
        "suggested_colors": ["#6F4E37", "#F5F0E6"],
        "deadline_hours": 48,
        "copywriting": ["Your morning, brewed right", "Breakfast from 7am"],
        "contact_details": ["@beanthere", "+1 555 0100"],
        "visual_references": ["latte art", "flat lay breakfast"],
        "provided_asset_description": "A steaming latte on a wooden table, morning light",
    }
    data.update(overrides)
    return data


def feedback_payload(**overrides) -> dict:
    data = {
        "score": 6,
        "strengths": ["Clear hierarchy"],
        "weaknesses": ["Headline too small"],
        "advice": "Give the headline more room.",
        "is_success": True,
    }
    data.update(overrides)
    return data


@pytest.fixture
def fake_client():
    return FakeOpenAI()


@pytest.fixture
def ai(fake_client):
    return DesignAIService(fake_client, text_model="text-model", vision_model="vision-model", language="English")


@pytest.fixture
def brief():
    return Brief(id="brief-1", **brief_payload())


@pytest.fixture
def user():
    return User(name="Mona")


@pytest.fixture
def context(ai, tmp_path):
    ctx = AppContext(ai, tmp_path)
    ctx.start()
    return ctx


def as_json(data: dict) -> str:
    return json.dumps(data)
