"""Session export/import as JSON snapshots, including older export formats."""

import base64
import json
from pathlib import Path
from typing import Any

from ..config import DEFAULT_CREATIVE_COUNT, DEFAULT_OBJECTIVE, DEFAULT_QUALITY, IMAGE_SIZES, OBJECTIVES
from ..errors import SnapshotError
from ..models import (
    Asset,
    CampaignBrief,
    Creative,
    CreativeStatus,
    GeneratedImage,
    Session,
    Settings,
    Variant,
    VersionHistory,
)
from ..utils import from_data_url, new_id, to_data_url

SNAPSHOT_VERSION = 2

# In-flight states do not survive an export; they resume at their rest state
REST_STATES = {
    CreativeStatus.PLANNING: CreativeStatus.DRAFT_READY,
    CreativeStatus.DRAFT_PENDING: CreativeStatus.DRAFT_READY,
    CreativeStatus.DRAFT_READY: CreativeStatus.DRAFT_READY,
    CreativeStatus.APPROVING: CreativeStatus.APPROVED,
    CreativeStatus.APPROVED: CreativeStatus.APPROVED,
}

# v1 single-ratio exports: image size and Spanish objective labels
LEGACY_IMAGE_SIZES = {"1K": "low", "2K": "medium", "4K": "high"}
LEGACY_OBJECTIVES = {
    "Aumentar ventas": OBJECTIVES[0],
    "Generar leads": OBJECTIVES[1],
    "Mejorar el reconocimiento de la marca": OBJECTIVES[2],
}


# ===== Export =====

def export_session(session: Session) -> dict[str, Any]:
    """Serialize the full session (every variant's full history)."""
    return {
        "version": SNAPSHOT_VERSION,
        "creatives": [_export_creative(c) for c in session.creatives],
        "total_cost": session.total_cost,
        "reference_summary": session.reference_summary,
        "brief": {
            "objective": session.brief.objective,
            "audience_action": session.brief.audience_action,
            "key_message": session.brief.key_message,
            "context": session.brief.context,
        },
        "settings": {
            "ratios": list(session.settings.ratios),
            "quality": session.settings.quality,
            "count": session.settings.count,
            "style_guide": session.settings.style_guide,
            "assets": [_export_asset(a) for a in session.settings.assets],
        },
    }


def _export_creative(creative: Creative) -> dict[str, Any]:
    return {
        "id": creative.id,
        "title": creative.title,
        "subtitle": creative.subtitle,
        "rationale": creative.rationale,
        "active_ratio": creative.active_ratio,
        "quality": creative.quality,
        "status": creative.status.value,
        "variants": [
            {
                "ratio": variant.ratio,
                "prompt": variant.prompt,
                "history": {
                    "entries": [_export_image(image) for image in variant.history.entries],
                    "cursor": variant.history.cursor,
                },
            }
            for variant in creative.variants.values()
        ],
    }


def _export_image(image: GeneratedImage) -> dict[str, Any]:
    return {
        "url": to_data_url(image.data, image.mime_type),
        "ratio": image.ratio,
        "is_draft": image.is_draft,
    }


def _export_asset(asset: Asset) -> dict[str, Any]:
    return {
        "id": asset.id,
        "name": asset.name,
        "mime_type": asset.mime_type,
        "data": base64.b64encode(asset.data).decode("ascii"),
    }


def dumps(session: Session) -> str:
    return json.dumps(export_session(session), indent=2)


def save(session: Session, path: str | Path):
    Path(path).write_text(dumps(session), encoding="utf-8")


# ===== Import =====

def import_session(data: Any) -> Session:
    """
    Build a new Session from a snapshot (full overwrite, never a merge).

    Accepts the current format, older revisions whose variants embed a single
    image, and v1 single-ratio exports.

    Raises:
        SnapshotError: If the shape is not recognized or a field is invalid.
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a JSON object")
    try:
        if "creatives" in data and "brief" in data:
            return _import_current(data)
        if "adCreatives" in data and "formState" in data and "totalCost" in data:
            return _import_v1(data)
    except SnapshotError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e
    raise SnapshotError("The import file is not a valid session export")


def loads(text: str) -> Session:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e
    return import_session(data)


def load(path: str | Path) -> Session:
    return loads(Path(path).read_text(encoding="utf-8"))


def _import_current(data: dict[str, Any]) -> Session:
    brief_data = data.get("brief") or {}
    settings_data = data.get("settings") or {}
    creatives = [_import_creative(c) for c in data.get("creatives") or []]

    ratios = tuple(settings_data.get("ratios") or (creatives[0].ratios if creatives else ()))
    settings = Settings(
        quality=_import_quality(settings_data.get("quality")),
        count=int(settings_data.get("count") or DEFAULT_CREATIVE_COUNT),
        style_guide=settings_data.get("style_guide"),
        assets=tuple(_import_asset(a) for a in settings_data.get("assets") or []),
        **({"ratios": ratios} if ratios else {}),
    )
    return Session(
        brief=CampaignBrief(
            objective=brief_data.get("objective") or DEFAULT_OBJECTIVE,
            audience_action=brief_data.get("audience_action") or "",
            key_message=brief_data.get("key_message") or "",
            context=brief_data.get("context") or "",
        ),
        settings=settings,
        creatives=creatives,
        total_cost=float(data.get("total_cost") or 0.0),
        reference_summary=data.get("reference_summary"),
    )


def _import_creative(data: dict[str, Any]) -> Creative:
    raw_variants = data["variants"]
    if isinstance(raw_variants, dict):
        raw_variants = [{"ratio": ratio, **variant} for ratio, variant in raw_variants.items()]
    variants = {}
    for raw in raw_variants:
        variant = _import_variant(raw)
        variants[variant.ratio] = variant
    if not variants:
        raise SnapshotError(f"Creative {data.get('id')} has no variants")

    # Older revisions have no lifecycle: everything was fully generated
    status = CreativeStatus(data.get("status") or CreativeStatus.APPROVED.value)
    active_ratio = data.get("active_ratio")
    return Creative(
        id=str(data.get("id") or new_id()),
        title=data.get("title") or "",
        subtitle=data.get("subtitle") or "",
        rationale=data.get("rationale") or "",
        variants=variants,
        active_ratio=active_ratio if active_ratio in variants else next(iter(variants)),
        quality=_import_quality(data.get("quality")),
        status=REST_STATES[status],
    )


def _import_quality(value: Any) -> str:
    quality = value or DEFAULT_QUALITY
    if quality not in IMAGE_SIZES:
        raise SnapshotError(f"Unknown quality: {quality}")
    return quality


def _import_variant(data: dict[str, Any]) -> Variant:
    ratio = data["ratio"]
    if "history" in data:
        history_data = data["history"] or {}
        entries = tuple(_import_image(e, ratio) for e in history_data.get("entries") or [])
        cursor = history_data.get("cursor")
        if entries:
            cursor = max(0, min(int(cursor if cursor is not None else len(entries) - 1), len(entries) - 1))
        else:
            cursor = None
        history = VersionHistory(entries=entries, cursor=cursor)
    elif data.get("image"):
        # Single embedded image -> one-entry history
        history = VersionHistory(entries=(_import_image(data["image"], ratio),), cursor=0)
    else:
        history = VersionHistory()
    return Variant(ratio=ratio, prompt=data.get("prompt") or "", history=history)


def _import_image(data: dict[str, Any] | str, ratio: str) -> GeneratedImage:
    if isinstance(data, str):
        data = {"url": data}
    raw, mime_type = from_data_url(data["url"])
    return GeneratedImage(
        data=raw,
        mime_type=mime_type,
        ratio=data.get("ratio") or data.get("aspectRatio") or ratio,
        is_draft=bool(data.get("is_draft", False)),
    )


def _import_asset(data: dict[str, Any]) -> Asset:
    return Asset(
        id=str(data.get("id") or new_id()),
        name=data.get("name") or "asset",
        mime_type=data.get("mime_type") or data.get("mimeType") or "application/octet-stream",
        data=base64.b64decode(data["data"]),
    )


def _import_v1(data: dict[str, Any]) -> Session:
    """v1 export: one ratio per creative, flat image list."""
    form = data["formState"]
    quality = LEGACY_IMAGE_SIZES.get(form.get("imageSize") or "1K", DEFAULT_QUALITY)
    creatives = []
    for raw in data["adCreatives"] or []:
        ratio = raw.get("aspectRatio") or form.get("aspectRatio") or "3:4"
        images = tuple(_import_image(image, ratio) for image in raw.get("images") or [])
        cursor = None
        if images:
            cursor = max(0, min(int(raw.get("currentImageIndex") or 0), len(images) - 1))
        variant = Variant(
            ratio=ratio,
            prompt=raw.get("imagePrompt") or "",
            history=VersionHistory(entries=images, cursor=cursor),
        )
        creatives.append(Creative(
            id=str(raw.get("id") or new_id()),
            title=raw.get("title") or "",
            subtitle=raw.get("subtitle") or "",
            rationale=raw.get("rationale") or "",
            variants={ratio: variant},
            active_ratio=ratio,
            quality=LEGACY_IMAGE_SIZES.get(raw.get("imageSize") or "", quality),
            status=CreativeStatus.APPROVED,
        ))

    objective = form.get("objective") or DEFAULT_OBJECTIVE
    return Session(
        brief=CampaignBrief(
            objective=LEGACY_OBJECTIVES.get(objective, objective),
            audience_action=form.get("audienceAction") or "",
            key_message=form.get("keyMessage") or "",
            context=form.get("context") or "",
        ),
        settings=Settings(
            ratios=(form.get("aspectRatio") or "3:4",),
            quality=quality,
            count=int(form.get("numberOfImages") or DEFAULT_CREATIVE_COUNT),
            # attachStyleGuideDirectly is not carried: the style guide text always
            # goes into the planner prompt
            style_guide=form.get("styleGuideContent"),
            assets=tuple(_import_asset(a) for a in form.get("assets") or []),
        ),
        creatives=creatives,
        total_cost=float(data.get("totalCost") or 0.0),
        reference_summary=data.get("urlSummaryForDisplay"),
    )
