"""Calorie estimation and image description via an LLM."""

import logging
from dataclasses import dataclass
from typing import Protocol

from intake.domain.nutrition import NutritionEstimate
from intake.services.parser import parse_nutrition

ESTIMATION_SYSTEM_PROMPT = (
    "You are a calorie estimation assistant. Your task is to estimate the "
    "calories and macronutrients in the provided meal description or image. "
    "Respond with ONLY a JSON object with the integer fields calories, carbs, "
    "protein and fat, where carbs, protein and fat are grams. For example: "
    '{"calories": 350, "carbs": 40, "protein": 12, "fat": 15}. '
    "Do not include any other text. If you cannot estimate, use 0 for every field."
)
CALORIES_ONLY_SYSTEM_PROMPT = (
    "You are a calorie estimation assistant. Your task is to estimate the "
    "calories in the provided meal description or image. Respond with ONLY the "
    "numerical value of the estimated calories. For example, if you estimate "
    "350 calories, respond with '350'. Do not include units like 'calories' or "
    "'kcal' or any other descriptive text. If you cannot estimate, respond with '0'."
)
DESCRIPTION_SYSTEM_PROMPT = (
    "You are an image analysis assistant. Your task is to provide a very short, "
    "concise description of the food in an image, suitable for a food log. "
    "Describe the main food item(s) in 2-5 words. For example: "
    "'Chicken salad sandwich' or 'Bowl of mixed berries'. If you cannot clearly "
    "identify the food, respond with 'Processed food image'."
)
DESCRIPTION_USER_PROMPT = "Describe the food in the provided image."
IMAGE_ONLY_PROMPT = "Estimate calories for the following image:"
UNKNOWN_IMAGE_DESCRIPTION = "processed food image"

_logger = logging.getLogger(__name__)


class EstimationError(Exception):
    """Base class for errors surfaced to the user on meal submission."""


class MissingCredentialError(EstimationError):
    """Raised when no API key is configured for the estimation endpoint."""

    def __init__(self) -> None:
        super().__init__(
            "OpenAI API key is not configured. Set OPENAI_API_KEY in your .env file."
        )


class EstimationUnavailableError(EstimationError):
    """Raised when the estimation endpoint fails or returns nothing."""


class UnparseableResponseError(EstimationError):
    """Raised when the model reply contains no usable calorie value."""

    def __init__(self, raw_text: str) -> None:
        super().__init__(f"Could not parse calorie estimate from response: {raw_text}")
        self.raw_text = raw_text


class EstimationClient(Protocol):
    """Interface for chat-style LLM completions."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        content: list[dict[str, object]],
        max_tokens: int,
        temperature: float,
        json_mode: bool,
    ) -> str | None:
        """Return the text of the first completion choice, if any."""


@dataclass
class EstimationService:
    """Service that builds estimation prompts and parses the replies.

    With ``with_macros`` off the model is asked for a bare calorie number
    and macros are reported as zero.
    """

    client: EstimationClient | None
    model: str
    max_tokens: int = 60
    temperature: float = 0.2
    with_macros: bool = True

    @property
    def configured(self) -> bool:
        """Return True when a credentialed client is available."""
        return self.client is not None

    async def estimate_nutrition(
        self, meal_text: str | None = None, image_data_url: str | None = None
    ) -> NutritionEstimate:
        """Estimate calories and macros for a meal description and/or photo."""
        if self.client is None:
            raise MissingCredentialError()
        content = _estimation_content(meal_text, image_data_url)
        try:
            reply = await self.client.complete(
                model=self.model,
                system_prompt=(
                    ESTIMATION_SYSTEM_PROMPT
                    if self.with_macros
                    else CALORIES_ONLY_SYSTEM_PROMPT
                ),
                content=content,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                json_mode=self.with_macros,
            )
        except Exception as exc:
            _logger.exception("Calorie estimation request failed")
            raise EstimationUnavailableError(
                str(exc) or "Failed to fetch calorie estimate"
            ) from exc
        if not reply:
            raise EstimationUnavailableError("No response content from OpenAI.")
        estimate = parse_nutrition(reply, legacy=not self.with_macros)
        if estimate is None:
            raise UnparseableResponseError(reply)
        return estimate

    async def describe_image(self, image_data_url: str) -> str | None:
        """Return a short label for a meal photo, or None when unsure."""
        if self.client is None:
            _logger.warning("OpenAI API key is not configured for description generation")
            return None
        try:
            reply = await self.client.complete(
                model=self.model,
                system_prompt=DESCRIPTION_SYSTEM_PROMPT,
                content=[
                    {"type": "text", "text": DESCRIPTION_USER_PROMPT},
                    {"type": "image_url", "image_url": {"url": image_data_url}},
                ],
                max_tokens=25,
                temperature=0.4,
                json_mode=False,
            )
        except Exception:
            _logger.exception("Image description request failed")
            return None
        description = (reply or "").strip()
        if not description or description.lower() == UNKNOWN_IMAGE_DESCRIPTION:
            _logger.info("No distinct image description: %r", description)
            return None
        return description


def _estimation_content(
    meal_text: str | None, image_data_url: str | None
) -> list[dict[str, object]]:
    content: list[dict[str, object]] = []
    if meal_text:
        content.append({"type": "text", "text": f"Meal: {meal_text}"})
    if image_data_url:
        if not meal_text:
            content.append({"type": "text", "text": IMAGE_ONLY_PROMPT})
        content.append({"type": "image_url", "image_url": {"url": image_data_url}})
    return content
