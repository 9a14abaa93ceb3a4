"""
AI gateway
Brief generation (text) and design evaluation (vision) through OpenAI
"""
import base64
import json
import re
import uuid
from typing import Optional
from urllib.parse import quote, urlencode

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from briefdesk import config
from briefdesk.errors import GenerationError
from briefdesk.models import (
    DEADLINE_RANGES,
    Brief,
    DesignCategory,
    Difficulty,
    Feedback,
)
from briefdesk.utils.log import get_logger

logger = get_logger(__name__)


def _string_list(description: str) -> dict:
    return {"type": "array", "items": {"type": "string"}, "description": description}


# Every field is required; id is assigned after parsing, never by the model
BRIEF_SCHEMA = {
    "type": "object",
    "properties": {
        "project_name": {"type": "string", "description": "Proposed project name"},
        "company_name": {"type": "string", "description": "Name of the fictional company"},
        "industry": {"type": "string", "description": "The company's precise field of work"},
        "about_company": {"type": "string", "description": "Short description of the company"},
        "target_audience": {"type": "string", "description": "Description of the target audience"},
        "project_goal": {"type": "string", "description": "Main goal of this design"},
        "required_deliverables": _string_list("List of required deliverables"),
        "style_preferences": {"type": "string", "description": "Preferred visual style"},
        "suggested_colors": _string_list("Suggested colors"),
        "deadline_hours": {"type": "integer", "description": "Hours available to finish the project (e.g. 24, 48)"},
        "copywriting": _string_list("Headlines and copy lines that must appear inside the design"),
        "contact_details": _string_list("Fictional contact details"),
        "visual_references": _string_list("Keywords to search for inspiration"),
        "provided_asset_description": {
            "type": "string",
            "description": (
                "Very precise English description of an image (portrait, product shot) that will be "
                "provided to the designer to use inside the design. Example: A smiling math teacher "
                "pointing at a whiteboard, studio lighting"
            ),
        },
    },
    "required": [
        "project_name",
        "company_name",
        "industry",
        "about_company",
        "target_audience",
        "project_goal",
        "required_deliverables",
        "style_preferences",
        "suggested_colors",
        "deadline_hours",
        "copywriting",
        "contact_details",
        "visual_references",
        "provided_asset_description",
    ],
    "additionalProperties": False,
}

# The score range is stated in the description only; Feedback validates it
FEEDBACK_SCHEMA = {
    "type": "object",
    "properties": {
        "score": {"type": "integer", "description": "Rating from 1 to 10"},
        "strengths": _string_list("Strengths of the design"),
        "weaknesses": _string_list("Weaknesses or mistakes"),
        "advice": {"type": "string", "description": "Friendly, encouraging advice for improvement"},
        "is_success": {"type": "boolean", "description": "Does the design succeed and serve its purpose?"},
    },
    "required": ["score", "strengths", "weaknesses", "advice", "is_success"],
    "additionalProperties": False,
}

FALLBACK_FEEDBACK = Feedback(
    score=8,
    strengths=["Good attempt", "Harmonious colors"],
    weaknesses=["Precise analysis of the image is currently unavailable"],
    advice="The design looks good, keep practicing!",
    is_success=True,
)


_FENCED = re.compile(r"\s*```(?:json)?\s*(.*?)\s*```\s*", re.DOTALL)


def _json_schema_format(name: str, schema: dict) -> dict:
    return {"type": "json_schema", "json_schema": {"name": name, "schema": schema, "strict": True}}


def strip_code_fences(content: str) -> str:
    """
    Remove markdown code fences around a JSON document

    Only a fence that wraps the whole response is removed; backticks inside
    string values are left alone.

    Args:
        content: raw model output, e.g. ```json\\n{...}\\n```

    Returns:
        the text between the fences, or the stripped input when it is not fenced
    """
    m = _FENCED.fullmatch(content)
    if m:
        return m.group(1).strip()
    return content.strip()


def build_brief_prompt(
    category: DesignCategory,
    difficulty: Difficulty,
    industry: Optional[str] = None,
    language: str = config.BRIEF_LANGUAGE,
) -> str:
    """Instruction sent to the model for one brief."""
    if industry:
        industry_prompt = f"Focus specifically on this industry: {industry}."
    else:
        industry_prompt = "Choose an interesting random industry."

    low, high = DEADLINE_RANGES[difficulty]
    if difficulty == Difficulty.BEGINNER:
        difficulty_prompt = (
            "Level: beginner. Keep the requirements simple and clear, the copy short, "
            "and the available time generous."
        )
    else:
        difficulty_prompt = (
            "Level: professional. Make the requirements complex, challenge the designer "
            "with creative constraints, and keep the time tight."
        )

    return f"""You are an art director. Create a fictional graphic design brief.
Design type: {category.value}.
{industry_prompt}
{difficulty_prompt}
deadline_hours must be between {low} and {high}.

Special requirements:
1. For an educational promotion, give details about the subject and the teacher.
2. For a YouTube thumbnail, focus on click-worthy, attention-grabbing titles.
3. provided_asset_description must be a very precise English description usable for image generation (e.g. the teacher's portrait or the product photo).
4. Every list must contain at least one item.

Write all text values in {language}, except provided_asset_description which is always English."""


def build_evaluation_prompt(brief: Brief) -> str:
    """Mentor instruction for judging a submission against its brief."""
    return f"""You are a graphic design mentor.
The designer uploaded a design based on the following brief:
- Project: {brief.project_name}
- Goal: {brief.project_goal}
- Audience: {brief.target_audience}
- Required copy: {", ".join(brief.copywriting)}
- Style: {brief.style_preferences}

Analyze the attached image. Did the designer follow the brief? Is the copy legible? Are the colors harmonious?
Be very kind and encouraging, but state the mistakes clearly so the designer can learn from them."""


def asset_image_url(brief: Brief) -> str:
    """
    URL of the illustrative asset image for a brief

    The brief id is the seed, so the same brief always yields the same image.
    """
    query = urlencode({
        "model": config.ASSET_IMAGE_MODEL,
        "width": 1024,
        "height": 1024,
        "nologo": "true",
        "enhance": "true",
        "seed": brief.id,
    })
    return f"{config.ASSET_IMAGE_BASE_URL}/{quote(brief.provided_asset_description, safe='')}?{query}"


class DesignAIService:
    """Wraps the two model calls the application makes."""

    def __init__(
        self,
        client: OpenAI,
        text_model: str = config.OPENAI_TEXT_MODEL,
        vision_model: str = config.OPENAI_VISION_MODEL,
        temperature: float = config.BRIEF_TEMPERATURE,
        language: str = config.BRIEF_LANGUAGE,
    ):
        self.client = client
        self.text_model = text_model
        self.vision_model = vision_model
        self.temperature = temperature
        self.language = language

    def _complete(self, model: str, messages: list, response_format: dict, **kwargs) -> str:
        resp = self.client.chat.completions.create(
            model=model,
            messages=messages,
            response_format=response_format,
            **kwargs,
        )
        content = resp.choices[0].message.content if resp.choices else None
        if not content or not content.strip():
            raise ValueError("empty response from model")
        return strip_code_fences(content)

    def generate_brief(
        self,
        category: DesignCategory,
        difficulty: Difficulty,
        industry: Optional[str] = None,
    ) -> Brief:
        """
        Generate a brief with a fresh id

        Args:
            category: design category
            difficulty: beginner or professional
            industry: industry focus; None lets the model pick one

        Returns:
            a fully populated Brief

        Raises:
            GenerationError: network failure, empty response, undecodable or invalid JSON
        """
        prompt = build_brief_prompt(category, difficulty, industry, self.language)
        try:
            content = self._complete(
                self.text_model,
                [{"role": "user", "content": prompt}],
                _json_schema_format("design_brief", BRIEF_SCHEMA),
                temperature=self.temperature,
            )
            data = json.loads(content)
            if not isinstance(data, dict):
                raise ValueError("brief payload is not a JSON object")
            data["id"] = str(uuid.uuid4())
            data["deadline_hours"] = self._clamp_deadline(data.get("deadline_hours"), difficulty)
            brief = Brief.model_validate(data)
        except (OpenAIError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("brief.generation_failed", category=category.value, error=str(e))
            raise GenerationError(str(e)) from e

        logger.info(
            "brief.generated",
            brief_id=brief.id,
            category=category.value,
            difficulty=difficulty.value,
            industry=brief.industry,
        )
        return brief

    @staticmethod
    def _clamp_deadline(value, difficulty: Difficulty):
        if not isinstance(value, int) or isinstance(value, bool):
            return value
        low, high = DEADLINE_RANGES[difficulty]
        clamped = min(max(value, low), high)
        if clamped != value:
            logger.info("brief.deadline_clamped", requested=value, deadline_hours=clamped)
        return clamped

    def evaluate_submission(self, brief: Brief, image: bytes, mime_type: str = "image/jpeg") -> Feedback:
        """
        Evaluate a submitted design against its brief

        Never raises: any failure returns a copy of FALLBACK_FEEDBACK.

        Args:
            brief: the project's brief
            image: raw image bytes
            mime_type: media type of the image

        Returns:
            the model's feedback, or the fallback
        """
        data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
        messages = [{
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": data_url}},
                {"type": "text", "text": build_evaluation_prompt(brief)},
            ],
        }]
        try:
            content = self._complete(
                self.vision_model,
                messages,
                _json_schema_format("design_feedback", FEEDBACK_SCHEMA),
            )
            feedback = Feedback.model_validate_json(content)
        except Exception as e:
            logger.warning("evaluation.fallback", brief_id=brief.id, error=str(e))
            return FALLBACK_FEEDBACK.model_copy(deep=True)

        logger.info("evaluation.completed", brief_id=brief.id, score=feedback.score)
        return feedback
