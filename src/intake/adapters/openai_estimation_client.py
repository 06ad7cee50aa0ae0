"""OpenAI chat completions client for calorie estimation."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from intake.services.estimation import EstimationClient


@dataclass
class OpenAIEstimationClient(EstimationClient):
    """Estimation client backed by the OpenAI chat completions API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIEstimationClient":
        """Create an OpenAI estimation client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

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
        """Send one system and one user message and return the reply text."""
        request_payload: dict[str, object] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            request_payload["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(**request_payload)
        if not response.choices:
            return None
        return response.choices[0].message.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
