"""Creative generation orchestrator - lifecycle, fan-out and failure isolation."""

import asyncio
from typing import Awaitable, Callable

from ..clients.base import ImageService
from ..config import COST_DRAFT, COST_EDIT, COST_FINAL, IMAGE_SIZES
from ..errors import (
    BriefValidationError,
    InvalidStateError,
    NoImageSelectedError,
    StudioError,
    UnknownCreativeError,
    VariantBusyError,
)
from ..models import (
    Creative,
    CreativeStatus,
    Failure,
    GeneratedImage,
    GenerationResult,
    Session,
    Success,
    Variant,
)
from ..services.planner import ConceptPlanner
from ..utils import format_error

# Non-primary variants cannot be generated while the creative is in these states
LOCKED_STATES = (CreativeStatus.PLANNING, CreativeStatus.DRAFT_PENDING)


class Orchestrator:
    """
    Drive creatives through planning -> draft -> approval and per-variant edits.

    Every remote call is scoped to one (creative id, ratio) unit. Its result is
    applied to the session by that key, its failure is recorded on
    `session.errors` and never aborts sibling units. A variant's busy flag is
    checked and set before a call is issued and cleared when it settles.
    """

    def __init__(self, images: ImageService, planner: ConceptPlanner):
        self.images = images
        self.planner = planner

    # ===== Batch operations =====

    async def generate(self, session: Session) -> list[Creative]:
        """
        Plan a fresh batch of creatives, replacing the working set, and draft them.

        Returns:
            The new creatives as they stand once every draft has settled.
            Empty if planning failed (the error is on session.errors).
        """
        session.clear_errors()
        session.creatives = []
        return await self._plan_and_draft(session, session.settings.count, summarize=True)

    async def generate_more(self, session: Session, count: int | None = None) -> list[Creative]:
        """Append more creatives planned from the current brief/settings."""
        return await self._plan_and_draft(session, session.settings.count if count is None else count, summarize=False)

    async def _plan_and_draft(self, session: Session, count: int, summarize: bool) -> list[Creative]:
        # 1. Plan (all or nothing)
        try:
            planned = await self.planner.plan(session, count, summarize=summarize)
        except StudioError as e:
            session.record_error(f"Planning failed: {format_error(e)}")
            print(f"Planning failed: {e}", flush=True)
            return []

        # 2. planning -> draft_pending for every creative, before any await
        pending = [self._begin_draft(c) for c in planned]
        session.append_creatives(pending)

        # 3. One draft per creative (primary ratio), each settling on its own
        print(f"Submitting {len(pending)} drafts...", flush=True)
        await asyncio.gather(*(self._draft(session, c.id, c.primary_ratio) for c in pending))

        ids = {c.id for c in pending}
        return [c for c in session.creatives if c.id in ids]

    def _begin_draft(self, creative: Creative) -> Creative:
        primary = creative.primary_ratio
        return creative.update_variant(primary, Variant.mark_busy).with_status(CreativeStatus.DRAFT_PENDING)

    async def _draft(self, session: Session, creative_id: str, ratio: str) -> GenerationResult:
        try:
            prompt = session.get(creative_id).variant(ratio).prompt
        except UnknownCreativeError:
            return Failure("Creative was discarded before its draft started")
        result = await self._run_unit(
            session,
            creative_id,
            ratio,
            lambda: self.images.draft_image(prompt, ratio),
            cost=COST_DRAFT,
        )
        # A failed draft still lands in draft_ready so the user can retry
        self._apply(session, creative_id, lambda c: c.with_status(CreativeStatus.DRAFT_READY))
        return result

    # ===== Per-creative operations =====

    async def redraft(self, session: Session, creative_id: str, prompt: str | None = None) -> GenerationResult:
        """New draft of the primary ratio for a creative in draft_ready."""
        try:
            creative = session.get(creative_id)
            if creative.status != CreativeStatus.DRAFT_READY:
                raise InvalidStateError(
                    f"Creative '{creative.title}' is {creative.status.value}; only draft_ready creatives can be re-drafted"
                )
            ratio = creative.primary_ratio
            self._check_idle(creative, ratio)
        except StudioError as e:
            return self._reject(session, e)

        def begin(c: Creative) -> Creative:
            c = c.update_variant(ratio, lambda v: (v.with_prompt(prompt) if prompt is not None else v).mark_busy())
            return c.with_status(CreativeStatus.DRAFT_PENDING)

        session.update_creative(creative_id, begin)
        return await self._draft(session, creative_id, ratio)

    async def approve(self, session: Session, creative_id: str) -> dict[str, GenerationResult]:
        """
        Approve a drafted creative: one full-quality call per ratio, in parallel.

        Returns:
            ratio -> result. Each ratio settles independently; a failed ratio
            leaves the others' results applied. Empty dict if rejected.
        """
        try:
            creative = session.get(creative_id)
            if creative.status != CreativeStatus.DRAFT_READY:
                raise InvalidStateError(
                    f"Creative '{creative.title}' is {creative.status.value}; only draft_ready creatives can be approved"
                )
            quality = self._resolve_quality(creative, None)
            for ratio in creative.ratios:
                self._check_idle(creative, ratio)
        except StudioError as e:
            self._reject(session, e)
            return {}

        creative = session.update_creative(
            creative_id,
            lambda c: c.mark_all_busy().with_status(CreativeStatus.APPROVING),
        )
        assets = list(session.settings.assets)
        print(f"Approving '{creative.title}': {len(creative.ratios)} full-quality calls...", flush=True)

        def final_call(variant: Variant) -> Callable[[], Awaitable[GeneratedImage]]:
            return lambda: self.images.final_image(variant.prompt, variant.ratio, quality, assets)

        results = await asyncio.gather(*(
            self._run_unit(session, creative_id, ratio, final_call(variant), cost=COST_FINAL[quality])
            for ratio, variant in creative.variants.items()
        ))
        self._apply(session, creative_id, lambda c: c.with_status(CreativeStatus.APPROVED))
        return dict(zip(creative.ratios, results))

    async def regenerate(
        self,
        session: Session,
        creative_id: str,
        ratio: str,
        prompt: str,
        quality: str | None = None,
    ) -> GenerationResult:
        """
        Store prompt/quality on the variant and append a new full-quality image.

        Rejected (no call issued) while the variant is busy or locked.
        """
        try:
            creative = session.get(creative_id)
            quality = self._resolve_quality(creative, quality)
            self._check_unlocked(creative, ratio)
            self._check_idle(creative, ratio)
        except StudioError as e:
            return self._reject(session, e)

        session.update_creative(
            creative_id,
            lambda c: c.update_variant(ratio, lambda v: v.with_prompt(prompt).mark_busy()).with_quality(quality),
        )
        assets = list(session.settings.assets)
        return await self._run_unit(
            session,
            creative_id,
            ratio,
            lambda: self.images.final_image(prompt, ratio, quality, assets),
            cost=COST_FINAL[quality],
        )

    async def edit(
        self,
        session: Session,
        creative_id: str,
        ratio: str,
        instruction: str,
        quality: str | None = None,
    ) -> GenerationResult:
        """
        Edit the currently selected image of a variant, appending the result.

        Rejected (no call issued) when nothing is selected or the variant is busy.
        """
        try:
            creative = session.get(creative_id)
            quality = self._resolve_quality(creative, quality)
            self._check_unlocked(creative, ratio)
            self._check_idle(creative, ratio)
            source = creative.variant(ratio).history.current
            if source is None:
                raise NoImageSelectedError(creative_id, ratio)
        except StudioError as e:
            return self._reject(session, e)

        session.update_creative(
            creative_id,
            lambda c: c.update_variant(ratio, Variant.mark_busy).with_quality(quality),
        )
        return await self._run_unit(
            session,
            creative_id,
            ratio,
            lambda: self.images.edit_image(source, instruction, quality),
            cost=COST_EDIT[quality],
        )

    # ===== Local (non-suspending) operations =====

    def select_version(self, session: Session, creative_id: str, ratio: str, index: int) -> Variant | None:
        """Move a variant's cursor (clamped to its history)."""
        try:
            return session.update_variant(creative_id, ratio, lambda v: v.select(index))
        except StudioError as e:
            self._reject(session, e)
            return None

    def update_prompt(self, session: Session, creative_id: str, ratio: str, prompt: str) -> Variant | None:
        try:
            return session.update_variant(creative_id, ratio, lambda v: v.with_prompt(prompt))
        except StudioError as e:
            self._reject(session, e)
            return None

    def set_active_ratio(self, session: Session, creative_id: str, ratio: str) -> Creative | None:
        try:
            return session.update_creative(creative_id, lambda c: c.with_active_ratio(ratio))
        except StudioError as e:
            self._reject(session, e)
            return None

    def discard(self, session: Session, creative_id: str) -> bool:
        """Remove a creative. Results of its in-flight calls are dropped."""
        try:
            session.discard(creative_id)
        except StudioError as e:
            self._reject(session, e)
            return False
        return True

    # ===== Unit execution =====

    async def _run_unit(
        self,
        session: Session,
        creative_id: str,
        ratio: str,
        call: Callable[[], Awaitable[GeneratedImage]],
        cost: float,
    ) -> GenerationResult:
        """
        Run one remote call for a variant already marked busy.

        The variant is settled (busy cleared, image appended on success) on
        every exit path.
        """
        result: GenerationResult = Failure("Call did not complete")
        try:
            result = Success(await call())
        except Exception as e:
            result = Failure(format_error(e))
        finally:
            image = result.image if isinstance(result, Success) else None
            applied = self._apply(
                session,
                creative_id,
                lambda c: c.update_variant(ratio, lambda v: v.settle(image)),
            )

        if isinstance(result, Success):
            if applied:
                session.add_cost(cost)
            print(f"  [{creative_id[:8]} {ratio}] DONE", flush=True)
        else:
            title = self._title(session, creative_id)
            session.record_error(f"Error in '{title}' ({ratio}): {result.reason}")
            print(f"  [{creative_id[:8]} {ratio}] ERROR: {result.reason}", flush=True)
        return result

    def _apply(self, session: Session, creative_id: str, fn: Callable[[Creative], Creative]) -> bool:
        """Keyed update that tolerates the creative having been discarded meanwhile."""
        try:
            session.update_creative(creative_id, fn)
        except UnknownCreativeError:
            print(f"  [{creative_id[:8]}] discarded, result dropped", flush=True)
            return False
        return True

    def _check_idle(self, creative: Creative, ratio: str):
        if creative.variant(ratio).busy:
            raise VariantBusyError(creative.id, ratio)

    def _check_unlocked(self, creative: Creative, ratio: str):
        creative.variant(ratio)
        if creative.status in LOCKED_STATES:
            raise InvalidStateError(
                f"Creative '{creative.title}' is {creative.status.value}; wait for its draft to finish"
            )

    def _resolve_quality(self, creative: Creative, quality: str | None) -> str:
        quality = quality or creative.quality
        if quality not in IMAGE_SIZES:
            raise BriefValidationError(f"Unknown quality: {quality}")
        return quality

    def _reject(self, session: Session, error: StudioError) -> Failure:
        message = format_error(error)
        session.record_error(message)
        print(f"Rejected: {message}", flush=True)
        return Failure(message)

    def _title(self, session: Session, creative_id: str) -> str:
        try:
            return session.get(creative_id).title
        except UnknownCreativeError:
            return creative_id
