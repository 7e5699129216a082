"""Concept planning service - turns the session brief into new creatives."""

from ..clients.base import TextService
from ..errors import BriefValidationError, PlanningError
from ..models import Creative, Session
from ..utils import has_urls, new_id


class ConceptPlanner:
    """Compose the planning brief, call the planner and build empty creatives."""

    def __init__(self, text: TextService):
        self.text = text

    async def plan(self, session: Session, count: int, summarize: bool = True) -> list[Creative]:
        """
        Plan `count` new creatives from the session's current brief and settings.

        Args:
            session: Session whose brief/settings are used.
            count: Number of concepts to request.
            summarize: Refresh the reference summary when the context has URLs.
                When False, the last stored summary is reused.

        Returns:
            Creatives in PLANNING status with one empty variant per ratio.
            Ids never collide with creatives already in the session.

        Raises:
            BriefValidationError: If the brief or settings are incomplete.
            PlanningError: If planning fails or returns no concepts.
        """
        brief = session.brief
        settings = session.settings
        brief.validate()
        settings.validate()
        if count < 1:
            raise BriefValidationError("Creative count must be at least 1")
        ratios = list(settings.ratios)

        # 1. Reference summary (best-effort, only when URLs are present)
        if summarize:
            summary = None
            if has_urls(brief.context):
                print("Summarizing referenced URLs...", flush=True)
                summary = await self.text.summarize_references(brief.context)
            session.reference_summary = summary

        # 2. Plan concepts
        print(f"Planning {count} concepts for ratios {ratios}...", flush=True)
        concepts = await self.text.plan_concepts(
            brief.to_planning_text(session.reference_summary),
            count,
            ratios,
            settings.style_guide,
            list(settings.assets),
        )
        if not concepts:
            raise PlanningError("Planner returned no concepts")
        print(f"  Planned {len(concepts)} concepts", flush=True)

        # 3. Build creatives
        taken = {c.id for c in session.creatives}
        creatives = []
        for concept in concepts[:count]:
            creative_id = new_id()
            while creative_id in taken:
                creative_id = new_id()
            taken.add(creative_id)
            creatives.append(Creative.from_concept(creative_id, concept, ratios, settings.quality))
        return creatives
