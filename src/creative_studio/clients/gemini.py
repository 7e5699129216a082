"""Gemini client - image generation/editing, concept planning and chat."""

import asyncio
import json
from io import BytesIO

from google import genai
from google.genai import types
from PIL import Image

from ..config import (
    GEMINI_DRAFT_MODEL,
    GEMINI_IMAGE_MODEL,
    GEMINI_TEXT_MODEL,
    IMAGE_SIZES,
    MAX_RETRIES,
    OBJECTIVES,
    RETRY_CODES,
)
from ..errors import GenerationError, PlanningError
from ..models import (
    Asset,
    AssistantReply,
    CampaignBrief,
    Concept,
    GeneratedImage,
    ToolCall,
    ToolResult,
)
from ..models.brief import BRIEF_FIELD_DESCRIPTIONS, UPDATE_BRIEF_TOOL
from ..prompt_loader import render_prompt

SUMMARY_FAILED = "Could not process the content of the URLs."


class GeminiClient:
    """Client for Gemini text models, Imagen drafts and Gemini 3 Pro Image."""

    def __init__(
        self,
        api_key: str,
        text_model: str = GEMINI_TEXT_MODEL,
        image_model: str = GEMINI_IMAGE_MODEL,
        draft_model: str = GEMINI_DRAFT_MODEL,
    ):
        self.client = genai.Client(api_key=api_key)
        self.text_model = text_model
        # Gemini 3 Pro Image supports up to 14 reference images
        self.image_model = image_model
        # Imagen - faster, cheaper previews
        self.draft_model = draft_model

    async def _call_with_retry(self, func, max_retries=MAX_RETRIES, retry_codes=RETRY_CODES):
        """Retry API calls on transient errors with exponential backoff."""
        for attempt in range(max_retries):
            try:
                return await func()
            except Exception as e:
                error_str = str(e)
                is_retryable = any(str(code) in error_str for code in retry_codes)

                if not is_retryable or attempt == max_retries - 1:
                    raise

                wait_time = 2 ** attempt  # 1s, 2s, 4s
                print(f"Gemini API error (attempt {attempt + 1}/{max_retries}), retrying in {wait_time}s: {e}", flush=True)
                await asyncio.sleep(wait_time)

    # ===== Images =====

    async def draft_image(self, prompt: str, ratio: str) -> GeneratedImage:
        """
        Generate a cheap preview with Imagen.

        Args:
            prompt: Full image prompt
            ratio: Aspect ratio, e.g. "9:16"

        Returns:
            Draft GeneratedImage (JPEG)
        """
        try:
            response = await self._call_with_retry(
                lambda: self.client.aio.models.generate_images(
                    model=self.draft_model,
                    prompt=prompt,
                    config=types.GenerateImagesConfig(
                        number_of_images=1,
                        output_mime_type="image/jpeg",
                        aspect_ratio=ratio,
                    ),
                )
            )
        except Exception as e:
            raise GenerationError(f"Draft generation failed: {e}") from e

        if not response.generated_images:
            raise GenerationError("No draft image in the Imagen response")
        image = response.generated_images[0].image
        return GeneratedImage(
            data=image.image_bytes,
            mime_type=image.mime_type or "image/jpeg",
            ratio=ratio,
            is_draft=True,
        )

    async def final_image(
        self,
        prompt: str,
        ratio: str,
        quality: str,
        assets: list[Asset],
    ) -> GeneratedImage:
        """
        Generate a full-quality creative with Gemini 3 Pro Image.

        Args:
            prompt: Full image prompt (visual + layout instructions)
            ratio: Aspect ratio
            quality: "low" | "medium" | "high" (mapped to 1K/2K/4K)
            assets: Reference assets, sent as inline images

        Returns:
            Final GeneratedImage
        """
        contents = [*self._asset_parts(assets), prompt]
        try:
            response = await self._call_with_retry(
                lambda: self.client.aio.models.generate_content(
                    model=self.image_model,
                    contents=contents,
                    config=types.GenerateContentConfig(
                        response_modalities=["IMAGE", "TEXT"],
                        image_config=types.ImageConfig(
                            aspect_ratio=ratio,
                            image_size=IMAGE_SIZES[quality],
                        ),
                    ),
                )
            )
        except Exception as e:
            raise GenerationError(f"Image generation failed: {e}") from e

        data, mime_type = self._extract_image(response)
        return GeneratedImage(data=data, mime_type=mime_type, ratio=ratio)

    async def edit_image(
        self,
        source: GeneratedImage,
        instruction: str,
        quality: str,
    ) -> GeneratedImage:
        """
        Apply an edit instruction to an existing image.

        Args:
            source: Image currently selected in a variant
            instruction: What to change
            quality: Output quality tier

        Returns:
            Edited GeneratedImage with the source's ratio
        """
        contents = [Image.open(BytesIO(source.data)), instruction]
        try:
            response = await self._call_with_retry(
                lambda: self.client.aio.models.generate_content(
                    model=self.image_model,
                    contents=contents,
                    config=types.GenerateContentConfig(
                        response_modalities=["IMAGE", "TEXT"],
                        image_config=types.ImageConfig(image_size=IMAGE_SIZES[quality]),
                    ),
                )
            )
        except Exception as e:
            raise GenerationError(f"Image edit failed: {e}") from e

        data, mime_type = self._extract_image(response)
        return GeneratedImage(data=data, mime_type=mime_type, ratio=source.ratio)

    def _asset_parts(self, assets: list[Asset]) -> list:
        """Images as PIL images, anything else (PDF style guides) as raw parts."""
        parts = []
        for asset in assets:
            if asset.is_image:
                parts.append(Image.open(BytesIO(asset.data)))
            else:
                parts.append(types.Part.from_bytes(data=asset.data, mime_type=asset.mime_type))
        return parts

    def _extract_image(self, response) -> tuple[bytes, str]:
        """Return (bytes, mime_type) of the first image part of a response."""
        if response.candidates:
            for part in response.candidates[0].content.parts or []:
                if part.inline_data and part.inline_data.mime_type.startswith("image/"):
                    return part.inline_data.data, part.inline_data.mime_type

        raise GenerationError("No image generated by Gemini")

    # ===== Text =====

    async def plan_concepts(
        self,
        brief: str,
        count: int,
        ratios: list[str],
        style_guide: str | None,
        assets: list[Asset],
    ) -> list[Concept]:
        """
        Plan `count` ad concepts with one prompt per ratio.

        Every ratio is a required key of the response schema. A response
        that still omits one gets a placeholder prompt for it.

        Raises:
            PlanningError: If the call fails or the response is not valid JSON.
        """
        prompt = render_prompt(
            "planner",
            count=str(count),
            ratios=", ".join(ratios),
            asset_names=", ".join(f'"{a.name}"' for a in assets) or "No files attached.",
            first_asset=assets[0].name if assets else "product",
            brief=brief,
            style_guide=f"\nAPPLICABLE STYLE GUIDE:\n{style_guide}" if style_guide else "",
        )
        contents = [*self._asset_parts(assets), prompt]

        try:
            response = await self._call_with_retry(
                lambda: self.client.aio.models.generate_content(
                    model=self.text_model,
                    contents=contents,
                    config=types.GenerateContentConfig(
                        response_mime_type="application/json",
                        response_schema=self._concept_schema(ratios),
                    ),
                )
            )
            payload = json.loads(response.text)
        except Exception as e:
            raise PlanningError(f"Concept planning failed: {e}") from e

        return concepts_from_payload(payload, ratios)

    def _concept_schema(self, ratios: list[str]) -> types.Schema:
        prompt_properties = {
            ratio: types.Schema(
                type=types.Type.STRING,
                description=f"Master prompt optimized for ratio {ratio}. Adapt text and element positions.",
            )
            for ratio in ratios
        }
        return types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "title": types.Schema(type=types.Type.STRING, description="Short concept name."),
                    "subtitle": types.Schema(type=types.Type.STRING, description="One-line idea."),
                    "rationale": types.Schema(type=types.Type.STRING, description="Strategy explanation."),
                    "variant_prompts": types.Schema(
                        type=types.Type.OBJECT,
                        properties=prompt_properties,
                        required=list(ratios),
                    ),
                },
                required=["title", "subtitle", "rationale", "variant_prompts"],
            ),
        )

    async def summarize_references(self, text: str) -> str:
        """
        Summarize the pages linked from text using Google Search grounding.

        Best-effort: returns a placeholder instead of raising.
        """
        if not text.strip():
            return ""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.text_model,
                contents=render_prompt("summarize", text=text),
                config=types.GenerateContentConfig(
                    tools=[types.Tool(google_search=types.GoogleSearch())],
                ),
            )
            return (response.text or "").strip()
        except Exception as e:
            print(f"Reference summary failed: {e}", flush=True)
            return SUMMARY_FAILED

    # ===== Assistant =====

    def create_chat(self, brief: CampaignBrief) -> "GeminiChat":
        """Open an assistant conversation seeded with the current brief."""
        system_instruction = render_prompt(
            "assistant",
            brief_state=brief.to_state_text(),
            objectives=", ".join(f'"{o}"' for o in OBJECTIVES),
            tool_name=UPDATE_BRIEF_TOOL,
        )
        chat = self.client.aio.chats.create(
            model=self.text_model,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                tools=[types.Tool(function_declarations=[brief_tool_declaration()])],
            ),
        )
        return GeminiChat(chat)


def concepts_from_payload(payload, ratios: list[str]) -> list[Concept]:
    """Concepts from a decoded planner response; malformed items raise PlanningError."""
    if not isinstance(payload, list):
        raise PlanningError("Concept planning returned no list of concepts")
    try:
        return [Concept.from_payload(item, ratios) for item in payload if isinstance(item, dict)]
    except (AttributeError, TypeError, ValueError) as e:
        raise PlanningError(f"Malformed concept in planner response: {e}") from e


def brief_tool_declaration() -> types.FunctionDeclaration:
    """The single callable exposed to the assistant."""
    return types.FunctionDeclaration(
        name=UPDATE_BRIEF_TOOL,
        description="Update the brief form fields. REPLACES current values with the new ones.",
        parameters=types.Schema(
            type=types.Type.OBJECT,
            properties={
                name: types.Schema(type=types.Type.STRING, description=description)
                for name, description in BRIEF_FIELD_DESCRIPTIONS.items()
            },
        ),
    )


class GeminiChat:
    """AssistantBackend over a google-genai async chat session."""

    def __init__(self, chat):
        self.chat = chat

    async def send(self, message: str | list[ToolResult], brief: CampaignBrief) -> AssistantReply:
        if isinstance(message, str):
            payload = f"{brief.to_state_text()}\n\n{message}"
        else:
            payload = [
                types.Part.from_function_response(
                    name=result.call.name,
                    response={"result": result.result},
                )
                for result in message
            ]
        response = await self.chat.send_message(payload)
        calls = tuple(
            ToolCall(name=call.name, args=dict(call.args or {}), id=call.id)
            for call in response.function_calls or []
        )
        return AssistantReply(text=response.text, tool_calls=calls)
