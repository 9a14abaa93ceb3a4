"""
HTTP API
One endpoint per user action: wizard steps, accepting briefs, the
dashboard and design submissions
"""
import json
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, StreamingResponse
from pydantic import BaseModel, Field

from briefdesk import config
from briefdesk.errors import (
    AuthRequired,
    GenerationError,
    GenerationInProgress,
    ProjectStateError,
    WizardStateError,
)
from briefdesk.models import (
    DesignCategory,
    Difficulty,
    Project,
    ProjectStatus,
    User,
    WizardState,
)
from briefdesk.services.ai_service import asset_image_url
from briefdesk.services.presentation import (
    DashboardView,
    FeedbackView,
    brief_clipboard_text,
    dashboard,
    present_feedback,
)
from briefdesk.services.session_service import AppContext
from briefdesk.services.timer_service import ProjectTimer, TimerState
from briefdesk.utils.log import get_logger, setup_logging

logger = get_logger(__name__)


# =========================
# Request bodies
# =========================
class LoginRequest(BaseModel):
    name: str = ""
    email: str = ""


class DifficultyRequest(BaseModel):
    difficulty: Difficulty


class CategoryRequest(BaseModel):
    category: DesignCategory


class CategoryResponse(BaseModel):
    category: DesignCategory
    industries: List[str]


class GenerateRequest(BaseModel):
    industry: str = Field(min_length=1)


class SubmissionResponse(BaseModel):
    project: Project
    feedback: FeedbackView


# =========================
# Internal helpers
# =========================
def get_context(request: Request) -> AppContext:
    return request.app.state.context


def _project_or_404(ctx: AppContext, project_id: str) -> Project:
    project = ctx.store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def setup_exception_handlers(app: FastAPI) -> None:
    """Map service errors to HTTP responses."""

    @app.exception_handler(GenerationError)
    async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": exc.user_message})

    @app.exception_handler(GenerationInProgress)
    async def in_progress_handler(request: Request, exc: GenerationInProgress) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(AuthRequired)
    async def auth_required_handler(request: Request, exc: AuthRequired) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": str(exc), "action": "login"})

    @app.exception_handler(WizardStateError)
    @app.exception_handler(ProjectStateError)
    async def state_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})


def create_app(context: Optional[AppContext] = None, timer_interval: float = 1.0) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        context: application context; built from the environment when omitted
        timer_interval: seconds between countdown stream updates
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config.LOG_DEBUG)
        ctx = context or AppContext.from_config()
        ctx.start()
        app.state.context = ctx
        logger.info("app.started", data_dir=str(ctx.data_dir))
        yield
        logger.info("app.stopped")

    app = FastAPI(title="BriefDesk: design brief generator", lifespan=lifespan)
    app.state.timer_interval = timer_interval
    setup_exception_handlers(app)

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/categories")
    def categories():
        return {
            "categories": [c.value for c in DesignCategory],
            "difficulties": [d.value for d in Difficulty],
        }

    # =========================
    # Mock authentication
    # =========================
    @app.post("/auth/login", response_model=User)
    def login(body: LoginRequest, ctx: AppContext = Depends(get_context)):
        return ctx.login(body.name, body.email)

    @app.post("/auth/logout")
    def logout(ctx: AppContext = Depends(get_context)):
        ctx.logout()
        return {"ok": True}

    @app.get("/auth/me", response_model=User)
    def me(ctx: AppContext = Depends(get_context)):
        if ctx.user is None:
            raise HTTPException(status_code=404, detail="Not logged in")
        return ctx.user

    # =========================
    # Wizard
    # =========================
    @app.get("/wizard", response_model=WizardState)
    def wizard_state(ctx: AppContext = Depends(get_context)):
        return ctx.wizard.snapshot()

    @app.post("/wizard/difficulty", response_model=WizardState)
    def wizard_difficulty(body: DifficultyRequest, ctx: AppContext = Depends(get_context)):
        return ctx.wizard.set_difficulty(body.difficulty)

    @app.post("/wizard/category", response_model=CategoryResponse)
    def wizard_category(body: CategoryRequest, ctx: AppContext = Depends(get_context)):
        industries = ctx.wizard.select_category(body.category)
        return CategoryResponse(category=body.category, industries=industries)

    @app.post("/wizard/back", response_model=WizardState)
    def wizard_back(ctx: AppContext = Depends(get_context)):
        return ctx.wizard.back()

    @app.post("/wizard/generate", response_model=WizardState)
    def wizard_generate(body: GenerateRequest, ctx: AppContext = Depends(get_context)):
        ctx.wizard.generate(body.industry)
        return ctx.wizard.snapshot()

    @app.post("/wizard/regenerate", response_model=WizardState)
    def wizard_regenerate(ctx: AppContext = Depends(get_context)):
        ctx.wizard.regenerate()
        return ctx.wizard.snapshot()

    @app.post("/wizard/reset", response_model=WizardState)
    def wizard_reset(ctx: AppContext = Depends(get_context)):
        return ctx.wizard.reset()

    @app.get("/wizard/brief/text", response_class=PlainTextResponse)
    def wizard_brief_text(ctx: AppContext = Depends(get_context)):
        brief = ctx.wizard.brief
        if brief is None:
            raise HTTPException(status_code=404, detail="No brief generated")
        return brief_clipboard_text(brief, asset_image_url(brief))

    # =========================
    # Projects
    # =========================
    @app.post("/projects", response_model=Project, status_code=201)
    def accept_brief(ctx: AppContext = Depends(get_context)):
        return ctx.accept_current_brief()

    @app.get("/projects", response_model=List[Project])
    def list_projects(status: Optional[ProjectStatus] = None, ctx: AppContext = Depends(get_context)):
        return ctx.store.list_projects(status)

    @app.get("/projects/dashboard", response_model=DashboardView)
    def project_dashboard(ctx: AppContext = Depends(get_context)):
        return dashboard(ctx.store.list_projects())

    @app.post("/projects/reconcile", response_model=List[Project])
    def reconcile(ctx: AppContext = Depends(get_context)):
        return ctx.store.expire_overdue()

    @app.get("/projects/{project_id}", response_model=Project)
    def get_project(project_id: str, ctx: AppContext = Depends(get_context)):
        return _project_or_404(ctx, project_id)

    @app.get("/projects/{project_id}/timer", response_model=TimerState)
    def project_timer(project_id: str, ctx: AppContext = Depends(get_context)):
        p = _project_or_404(ctx, project_id)
        return ProjectTimer(p.start_time, p.brief.deadline_hours).state()

    @app.get("/projects/{project_id}/timer/stream")
    async def project_timer_stream(project_id: str, request: Request, ctx: AppContext = Depends(get_context)):
        p = _project_or_404(ctx, project_id)
        timer = ProjectTimer(p.start_time, p.brief.deadline_hours)

        async def lines():
            async for state in timer.countdown(interval=request.app.state.timer_interval):
                yield json.dumps(state.model_dump()) + "\n"

        return StreamingResponse(lines(), media_type="application/x-ndjson")

    @app.get("/projects/{project_id}/asset")
    def project_asset(project_id: str, ctx: AppContext = Depends(get_context)):
        p = _project_or_404(ctx, project_id)
        return RedirectResponse(asset_image_url(p.brief))

    @app.post("/projects/{project_id}/submission", response_model=SubmissionResponse)
    def submit_design(
        project_id: str,
        file: UploadFile = File(...),
        ctx: AppContext = Depends(get_context),
    ):
        mime_type = file.content_type or "image/jpeg"
        if not mime_type.startswith("image/"):
            raise HTTPException(status_code=415, detail="Upload an image file")
        image = file.file.read()
        if not image:
            raise HTTPException(status_code=400, detail="Empty upload")

        project = ctx.submit_design(project_id, image, mime_type)
        if project is None:
            raise HTTPException(status_code=404, detail="Project not found")
        return SubmissionResponse(project=project, feedback=present_feedback(project.feedback))

    @app.get("/projects/{project_id}/feedback", response_model=FeedbackView)
    def project_feedback(project_id: str, ctx: AppContext = Depends(get_context)):
        p = _project_or_404(ctx, project_id)
        if p.feedback is None:
            raise HTTPException(status_code=404, detail="No feedback yet")
        return present_feedback(p.feedback)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
