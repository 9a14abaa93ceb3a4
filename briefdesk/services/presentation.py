"""
Presentation helpers
Display structures for feedback, the dashboard and the copyable brief text
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from briefdesk.models import Brief, Feedback, Project, ProjectStatus
from briefdesk.services.ai_service import FALLBACK_FEEDBACK
from briefdesk.services.timer_service import ProjectTimer, TimerState


class FeedbackView(BaseModel):
    score: int
    score_label: str
    verdict: str
    strengths: List[str]
    weaknesses: List[str]
    advice: str
    is_fallback: bool


class ActiveProjectCard(BaseModel):
    id: str
    project_name: str
    industry: str
    deadline_hours: int
    timer: TimerState


class CompletedProjectCard(BaseModel):
    id: str
    project_name: str
    industry: str
    score: Optional[int]
    is_success: Optional[bool]
    user_image: Optional[str]


class DashboardView(BaseModel):
    active: List[ActiveProjectCard]
    completed: List[CompletedProjectCard]
    expired: List[str]


def present_feedback(feedback: Feedback) -> FeedbackView:
    return FeedbackView(
        score=feedback.score,
        score_label=f"{feedback.score}/10",
        verdict="Success" if feedback.is_success else "Needs work",
        strengths=list(feedback.strengths),
        weaknesses=list(feedback.weaknesses),
        advice=feedback.advice,
        is_fallback=feedback == FALLBACK_FEEDBACK,
    )


def brief_clipboard_text(brief: Brief, asset_url: str) -> str:
    """Plain-text summary of a brief for copying."""
    return "\n".join([
        f"Project: {brief.project_name}",
        f"Company: {brief.company_name}",
        f"Industry: {brief.industry}",
        "----------------",
        f"Deliverables: {', '.join(brief.required_deliverables)}",
        f"Copy: {' | '.join(brief.copywriting)}",
        "----------------",
        f"Asset: {asset_url}",
        f"Deadline: {brief.deadline_hours} hours",
    ])


def dashboard(projects: List[Project], now: Optional[datetime] = None) -> DashboardView:
    """Split projects into the dashboard sections, keeping store order."""
    active, completed, expired = [], [], []
    for p in projects:
        if p.status == ProjectStatus.ACTIVE:
            active.append(ActiveProjectCard(
                id=p.id,
                project_name=p.brief.project_name,
                industry=p.brief.industry,
                deadline_hours=p.brief.deadline_hours,
                timer=ProjectTimer(p.start_time, p.brief.deadline_hours).state(now),
            ))
        elif p.status == ProjectStatus.COMPLETED:
            completed.append(CompletedProjectCard(
                id=p.id,
                project_name=p.brief.project_name,
                industry=p.brief.industry,
                score=p.feedback.score if p.feedback else None,
                is_success=p.feedback.is_success if p.feedback else None,
                user_image=p.user_image,
            ))
        else:
            expired.append(p.id)
    return DashboardView(active=active, completed=completed, expired=expired)
