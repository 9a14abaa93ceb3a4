"""
Data models
Briefs, feedback, projects, the mock user and the wizard snapshot
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, PositiveInt, model_validator


class DesignCategory(str, Enum):
    SOCIAL_MEDIA = "Social Media"
    YOUTUBE = "YouTube Thumbnail"
    EDUCATION = "Educational Promotion"
    ADVERTISING = "Advertising Campaign"
    LOGO = "Logo Design"
    BRAND_IDENTITY = "Brand Identity"
    UI_UX = "UI/UX"
    PACKAGING = "Packaging"
    ILLUSTRATION = "Digital Illustration"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    PROFESSIONAL = "Professional"


# Allowed deadline_hours per difficulty (inclusive)
DEADLINE_RANGES = {
    Difficulty.BEGINNER: (24, 72),
    Difficulty.PROFESSIONAL: (6, 24),
}

RANDOM_INDUSTRY = "random"

INDUSTRIES = [
    "Restaurants & Cafés",
    "Technology & Software",
    "Real Estate & Engineering",
    "Fashion",
    "Health & Fitness",
    "Cosmetics",
    "Travel & Tourism",
    "Financial Services",
    "E-commerce Store",
]

EDUCATION_INDUSTRIES = [
    "Tutoring (Math/Science)",
    "Language Teaching (English/German)",
    "Quran Memorization",
    "Early Childhood (Kindergarten)",
    "Programming & Graphic Courses",
    "Personal Trainer",
    "Music & Drawing Lessons",
    "Online Learning Platforms",
]

YOUTUBE_INDUSTRIES = [
    "Gaming",
    "Vlog (Daily Life & Travel)",
    "Tech Review",
    "Stories & Documentaries",
    "Cooking & Recipes",
    "Podcasts & Interviews",
    "Sports Analysis",
    "Educational Content",
]


def industries_for(category: DesignCategory) -> List[str]:
    """Preset industries offered for a category."""
    if category == DesignCategory.EDUCATION:
        return list(EDUCATION_INDUSTRIES)
    if category == DesignCategory.YOUTUBE:
        return list(YOUTUBE_INDUSTRIES)
    return list(INDUSTRIES)


class Brief(BaseModel):
    """Generated design assignment"""
    id: str
    project_name: str
    company_name: str
    industry: str
    about_company: str
    target_audience: str
    project_goal: str
    required_deliverables: List[str] = Field(min_length=1)
    style_preferences: str
    suggested_colors: List[str] = Field(min_length=1)
    deadline_hours: PositiveInt
    copywriting: List[str] = Field(min_length=1)        # lines to place inside the design
    contact_details: List[str] = Field(min_length=1)
    visual_references: List[str] = Field(min_length=1)  # inspiration keywords
    provided_asset_description: str                     # English prompt for the asset image


class Feedback(BaseModel):
    """AI critique of a submitted design"""
    score: int = Field(ge=1, le=10)
    strengths: List[str]
    weaknesses: List[str]
    advice: str
    is_success: bool


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class Project(BaseModel):
    """A brief accepted by the user"""
    id: str
    brief: Brief
    start_time: datetime
    status: ProjectStatus = ProjectStatus.ACTIVE
    feedback: Optional[Feedback] = None
    user_image: Optional[str] = None  # relative to the data directory

    @model_validator(mode="after")
    def feedback_only_when_completed(self):
        if self.feedback is not None and self.status != ProjectStatus.COMPLETED:
            raise ValueError("feedback is only attached to completed projects")
        return self


class User(BaseModel):
    """Mock-authenticated designer"""
    name: str = "Graphico Designer"
    email: str = "designer@graphico.com"
    avatar: str = ""
    level: str = "Level 1"
    xp: int = 0


class WizardStep(str, Enum):
    CATEGORY = "category"
    INDUSTRY = "industry"
    RESULT = "result"


class WizardState(BaseModel):
    step: WizardStep = WizardStep.CATEGORY
    difficulty: Difficulty = Difficulty.BEGINNER
    category: Optional[DesignCategory] = None
    industry: str = ""
    brief: Optional[Brief] = None
    loading: bool = False
    error: Optional[str] = None
