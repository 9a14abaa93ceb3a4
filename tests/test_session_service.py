"""Tests for the application context: mock login, accepting briefs, submissions."""
import json

import pytest

from briefdesk.errors import AuthRequired, GenerationError, ProjectStateError, WizardStateError
from briefdesk.models import DesignCategory, Feedback, ProjectStatus, WizardStep
from briefdesk.services.ai_service import FALLBACK_FEEDBACK
from briefdesk.services.session_service import USER_FILE, AppContext
from tests.conftest import as_json, brief_payload, feedback_payload


def generate(context, fake_client):
    fake_client.queue(as_json(brief_payload()))
    context.wizard.select_category(DesignCategory.SOCIAL_MEDIA)
    return context.wizard.generate("Restaurants & Cafés")


class TestLogin:
    def test_defaults(self, context):
        user = context.login()

        assert user.name == "Graphico Designer"
        assert user.email == "designer@graphico.com"
        assert user.level == "Level 1"
        assert user.xp == 0

    def test_persisted_across_restart(self, context, ai, tmp_path):
        context.login("Mona", "mona@example.com")

        restarted = AppContext(ai, tmp_path)
        restarted.start()

        assert restarted.user.name == "Mona"
        assert restarted.user.email == "mona@example.com"

    def test_logout_clears_user_and_wizard(self, context, fake_client, tmp_path):
        context.login("Mona")
        generate(context, fake_client)

        context.logout()

        assert context.user is None
        assert not (tmp_path / USER_FILE).exists()
        assert context.wizard.snapshot().step == WizardStep.CATEGORY

    def test_unreadable_user_file_ignored(self, ai, tmp_path):
        (tmp_path / USER_FILE).write_text("{oops", encoding="utf-8")

        ctx = AppContext(ai, tmp_path)
        ctx.start()

        assert ctx.user is None

    def test_null_user_envelope_ignored(self, ai, tmp_path):
        (tmp_path / USER_FILE).write_text(json.dumps({"version": 1, "user": None}), encoding="utf-8")

        ctx = AppContext(ai, tmp_path)
        ctx.start()

        assert ctx.user is None


class TestAcceptBrief:
    def test_requires_generated_brief(self, context):
        context.login()

        with pytest.raises(WizardStateError):
            context.accept_current_brief()

    def test_requires_login(self, context, fake_client):
        generate(context, fake_client)

        with pytest.raises(AuthRequired):
            context.accept_current_brief()

        assert context.store.list_projects() == []
        assert context.wizard.snapshot().step == WizardStep.RESULT

    def test_rejected_after_failed_regenerate(self, context, fake_client):
        context.login()
        generate(context, fake_client)
        fake_client.queue("not json")
        with pytest.raises(GenerationError):
            context.wizard.regenerate()

        with pytest.raises(WizardStateError):
            context.accept_current_brief()
        context.wizard.back()
        with pytest.raises(WizardStateError):
            context.accept_current_brief()

        assert context.store.list_projects() == []

    def test_creates_project_and_resets_wizard(self, context, fake_client):
        context.login()
        brief = generate(context, fake_client)

        project = context.accept_current_brief()

        assert project.brief == brief
        assert project.status == ProjectStatus.ACTIVE
        assert context.store.list_projects() == [project]
        assert context.wizard.snapshot().step == WizardStep.CATEGORY


class TestSubmitDesign:
    def accepted(self, context, fake_client):
        context.login()
        generate(context, fake_client)
        return context.accept_current_brief()

    def test_completes_project(self, context, fake_client, tmp_path):
        project = self.accepted(context, fake_client)
        fake_client.queue(as_json(feedback_payload(score=9)))

        done = context.submit_design(project.id, b"png-bytes", "image/png")

        assert done.status == ProjectStatus.COMPLETED
        assert done.feedback.score == 9
        assert done.user_image == f"uploads/{project.id}.png"
        assert (tmp_path / done.user_image).read_bytes() == b"png-bytes"
        assert [p.status for p in context.store.list_projects()] == [ProjectStatus.COMPLETED]

    def test_fallback_feedback_still_completes(self, context, fake_client):
        project = self.accepted(context, fake_client)
        fake_client.queue("not json")

        done = context.submit_design(project.id, b"jpeg-bytes")

        assert done.status == ProjectStatus.COMPLETED
        assert done.feedback == FALLBACK_FEEDBACK

    def test_unknown_project(self, context):
        context.login()

        assert context.submit_design("missing", b"x") is None

    def test_only_active_projects(self, context, fake_client):
        project = self.accepted(context, fake_client)
        fake_client.queue(as_json(feedback_payload()))
        context.submit_design(project.id, b"first")

        with pytest.raises(ProjectStateError):
            context.submit_design(project.id, b"second")

    def test_requires_login(self, context, fake_client):
        project = self.accepted(context, fake_client)
        context.logout()

        with pytest.raises(AuthRequired):
            context.submit_design(project.id, b"x")

    def test_concurrent_submission_keeps_first_result(self, context, fake_client, tmp_path, monkeypatch):
        project = self.accepted(context, fake_client)
        stored_image = tmp_path / "uploads" / f"{project.id}.png"

        def evaluate(brief, image, mime_type):
            # Another upload finishes while this one is being evaluated
            stored_image.write_bytes(b"first")
            context.store.complete_project(project.id, Feedback(**feedback_payload(score=9)), f"uploads/{project.id}.png")
            return Feedback(**feedback_payload(score=2))

        monkeypatch.setattr(context.ai, "evaluate_submission", evaluate)

        with pytest.raises(ProjectStateError):
            context.submit_design(project.id, b"second", "image/png")

        assert context.store.get_project(project.id).feedback.score == 9
        assert stored_image.read_bytes() == b"first"
        assert [p.name for p in stored_image.parent.iterdir()] == [stored_image.name]
