"""Generic LLM client with provider-agnostic interface."""

import json

from openai import AsyncOpenAI

from ..config import OPENAI_TEXT_MODEL
from ..errors import PlanningError
from ..models import Asset, Concept
from ..prompt_loader import load_prompt, render_prompt
from .gemini import SUMMARY_FAILED, concepts_from_payload


class LLMClient:
    """Generic LLM client. Currently uses OpenAI, interface is provider-agnostic."""

    def __init__(self, api_key: str, model: str = OPENAI_TEXT_MODEL):
        self._client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.total_input_tokens = 0
        self.total_output_tokens = 0

    async def call(self, system_prompt: str, user_message: str, label: str = "") -> str:
        """Make LLM call and return response text.

        Args:
            system_prompt: System/developer prompt.
            user_message: User message.
            label: Optional label for logging token usage.

        Returns:
            Response text content.
        """
        response = await self._client.responses.create(
            model=self.model,
            input=[
                {"role": "developer", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            reasoning={"effort": "medium"},
        )

        # Track tokens
        usage = response.usage
        input_tokens = usage.input_tokens
        output_tokens = usage.output_tokens
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens

        if label:
            print(f"  {label}: input={input_tokens}, output={output_tokens}", flush=True)

        return response.output_text.strip()

    async def plan_concepts(
        self,
        brief: str,
        count: int,
        ratios: list[str],
        style_guide: str | None,
        assets: list[Asset],
    ) -> list[Concept]:
        """Plan concepts as JSON text. Assets are referenced by name only."""
        system_prompt = render_prompt(
            "planner",
            count=str(count),
            ratios=", ".join(ratios),
            asset_names=", ".join(f'"{a.name}"' for a in assets) or "No files attached.",
            first_asset=assets[0].name if assets else "product",
            brief=brief,
            style_guide=f"\nAPPLICABLE STYLE GUIDE:\n{style_guide}" if style_guide else "",
        )
        user_message = load_prompt("planner_json").format(
            count=count,
            ratios=", ".join(f'"{r}"' for r in ratios),
        )

        try:
            output = await self.call(system_prompt, user_message, label="PLANNER")
            payload = json.loads(self._strip_fences(output))
        except Exception as e:
            raise PlanningError(f"Concept planning failed: {e}") from e

        return concepts_from_payload(payload, ratios)

    async def summarize_references(self, text: str) -> str:
        """Best-effort summary of the referenced pages; never raises."""
        if not text.strip():
            return ""
        try:
            return await self.call(render_prompt("summarize", text=text), text, label="SUMMARY")
        except Exception as e:
            print(f"Reference summary failed: {e}", flush=True)
            return SUMMARY_FAILED

    def _strip_fences(self, output: str) -> str:
        """Remove a ```json ... ``` wrapper if the model added one."""
        text = output.strip()
        if text.startswith("```"):
            text = text.split("\n", 1)[1] if "\n" in text else ""
            if text.rstrip().endswith("```"):
                text = text.rstrip()[:-3]
        return text.strip()

    def get_token_totals(self) -> tuple[int, int]:
        """Return accumulated (input, output) tokens."""
        return self.total_input_tokens, self.total_output_tokens
