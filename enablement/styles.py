"""
Style pattern catalog: extraction from uploaded reference files, brand-default
synthesis, recommendations, adjustment, combination and usage tracking.
"""

import copy
import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from .brand import (
    BRAND_COLORS,
    BRAND_ELEMENTS,
    BRAND_LAYOUT,
    BRAND_NAME,
    BRAND_TYPOGRAPHY,
    INDUSTRY_STYLES,
    TABLES_VERSION,
)
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

PatternType = Literal["uploaded", "learned", "adjusted", "combined"]

PATTERNS_NAMESPACE = "enablement_style_patterns"
PROGRESS_NAMESPACE = "enablement_learning_progress"

# Smoothing factor for the success-rate moving average.
SUCCESS_ALPHA = 0.1
RECOMMENDATION_THRESHOLD = 0.7
BRAND_STYLE_CONFIDENCE = 0.9
BRAND_SOURCE = "brand guidelines"

PERSISTENCE_ERRORS = (OSError, ValueError, KeyError, TypeError, AttributeError)


class StyleNotFoundError(LookupError):
    pass


@dataclass
class ColorPalette:
    primary: str
    secondary: str
    accent: str
    background: str
    text: str
    light_text: Optional[str] = None


@dataclass
class Typography:
    primary: str
    heading: str
    sizes: Dict[str, int] = field(default_factory=dict)
    weights: Dict[str, int] = field(default_factory=dict)


@dataclass
class Layout:
    spacing: int
    border_radius: int
    max_width: Optional[int] = None


@dataclass
class BrandElements:
    logo: str
    patterns: List[str] = field(default_factory=list)


@dataclass
class StylePattern:
    id: str
    name: str
    type: PatternType
    source: str
    confidence: float
    colors: ColorPalette
    typography: Typography
    layout: Layout
    brand_elements: BrandElements
    created_at: datetime
    last_used: datetime
    usage_count: int = 0
    success_rate: float = 0.8
    brand_compliance: float = 0.98
    tables_version: str = TABLES_VERSION

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["last_used"] = self.last_used.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StylePattern":
        return cls(
            id=data["id"],
            name=data["name"],
            type=data["type"],
            source=data["source"],
            confidence=float(data["confidence"]),
            colors=ColorPalette(**data["colors"]),
            typography=Typography(**data["typography"]),
            layout=Layout(**data["layout"]),
            brand_elements=BrandElements(**data["brand_elements"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            last_used=datetime.fromisoformat(data["last_used"]),
            usage_count=int(data.get("usage_count", 0)),
            success_rate=float(data.get("success_rate", 0.8)),
            brand_compliance=float(data.get("brand_compliance", 0.98)),
            tables_version=str(data.get("tables_version", "unknown")),
        )


@dataclass
class LearningProgress:
    total_uploads: int = 0
    learned_patterns: int = 0
    style_confidence: float = 0.5
    last_learning: Optional[datetime] = None
    improvements: List[str] = field(default_factory=list)
    industry_styles: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_learning"] = self.last_learning.isoformat() if self.last_learning else None
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LearningProgress":
        last_learning = data.get("last_learning")
        return cls(
            total_uploads=int(data.get("total_uploads", 0)),
            learned_patterns=int(data.get("learned_patterns", 0)),
            style_confidence=float(data.get("style_confidence", 0.5)),
            last_learning=datetime.fromisoformat(last_learning) if last_learning else None,
            improvements=list(data.get("improvements", [])),
            industry_styles=dict(data.get("industry_styles", {})),
        )


@dataclass(frozen=True)
class UploadedFile:
    """
    A reference file handed over by the upload layer.

    Only the name and declared MIME type drive extraction; `data` is carried
    for extractors that want to inspect the payload.
    """

    name: str
    content_type: str
    data: bytes = b""


def generate_learning_insights(progress: LearningProgress) -> List[str]:
    insights: List[str] = []

    if progress.total_uploads > 0:
        insights.append(f"Analyzed {progress.total_uploads} uploaded files")

    if progress.learned_patterns > 0:
        insights.append(f"Learned {progress.learned_patterns} style patterns")

    confidence_pct = round(progress.style_confidence * 100)
    if progress.style_confidence > 0.8:
        insights.append(f"High confidence in style matching ({confidence_pct}%)")
    elif progress.style_confidence > 0.5:
        insights.append(f"Building style confidence ({confidence_pct}%)")

    if progress.improvements:
        insights.append(f"Recent improvements: {', '.join(progress.improvements[-3:])}")

    if progress.industry_styles:
        insights.append(f"Adapted styles for {len(progress.industry_styles)} industries")

    return insights


# --- Extraction strategies ----------------------------------------------------

Extractor = Callable[[UploadedFile, str, datetime], StylePattern]


def _brand_pattern(
    *,
    pattern_id: str,
    name: str,
    source: str,
    confidence: float,
    now: datetime,
    light_text: bool = False,
    max_width: bool = False,
) -> StylePattern:
    colors = ColorPalette(
        primary=BRAND_COLORS["primary"],
        secondary=BRAND_COLORS["secondary"],
        accent=BRAND_COLORS["accent"],
        background=BRAND_COLORS["background"],
        text=BRAND_COLORS["text"],
        light_text=BRAND_COLORS["light_text"] if light_text else None,
    )
    return StylePattern(
        id=pattern_id,
        name=name,
        type="learned",
        source=source,
        confidence=confidence,
        colors=colors,
        typography=Typography(
            primary=BRAND_TYPOGRAPHY["primary"],
            heading=BRAND_TYPOGRAPHY["heading"],
            sizes=dict(BRAND_TYPOGRAPHY["sizes"]),
            weights=dict(BRAND_TYPOGRAPHY["weights"]),
        ),
        layout=Layout(
            spacing=BRAND_LAYOUT["spacing"],
            border_radius=BRAND_LAYOUT["border_radius"],
            max_width=BRAND_LAYOUT["max_width"] if max_width else None,
        ),
        brand_elements=BrandElements(
            logo=BRAND_ELEMENTS["logo"],
            patterns=list(BRAND_ELEMENTS["patterns"]),
        ),
        created_at=now,
        last_used=now,
    )


def extract_image_style(file: UploadedFile, pattern_id: str, now: datetime) -> StylePattern:
    return _brand_pattern(
        pattern_id=pattern_id,
        name=f"{BRAND_NAME} B2B Image Style from {file.name}",
        source=file.name,
        confidence=0.85,
        now=now,
    )


def extract_pdf_style(file: UploadedFile, pattern_id: str, now: datetime) -> StylePattern:
    return _brand_pattern(
        pattern_id=pattern_id,
        name=f"{BRAND_NAME} B2B Document Style from {file.name}",
        source=file.name,
        confidence=0.80,
        now=now,
        light_text=True,
        max_width=True,
    )


def extract_document_style(file: UploadedFile, pattern_id: str, now: datetime) -> StylePattern:
    return _brand_pattern(
        pattern_id=pattern_id,
        name=f"{BRAND_NAME} B2B Content Style from {file.name}",
        source=file.name,
        confidence=0.75,
        now=now,
    )


def select_extractor(content_type: str) -> Optional[Extractor]:
    kind = content_type.lower()
    if kind.startswith("image/"):
        return extract_image_style
    if kind == "application/pdf":
        return extract_pdf_style
    if "word" in kind or "document" in kind:
        return extract_document_style
    return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


TEXT_FIELDS = ("name", "source")
SCORE_FIELDS = ("confidence", "success_rate", "brand_compliance")
DESCRIPTOR_FIELDS = ("colors", "typography", "layout", "brand_elements")
ADJUSTABLE_FIELDS = set(TEXT_FIELDS + SCORE_FIELDS + DESCRIPTOR_FIELDS)


class StylePatternStore:
    """
    Owns the style catalog and the learning-progress aggregate.

    Mutations and their persistence run under a single lock. Readers work
    from `_snapshot`, a deep copy refreshed after every mutation, so they
    never observe a half-applied change and never block on a writer.
    Storage failures are logged and absorbed; the in-memory state stays
    authoritative for the lifetime of the process.
    """

    def __init__(
        self,
        kv_store: KeyValueStore,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.kv_store = kv_store
        self.id_factory = id_factory
        self.clock = clock
        self._lock = threading.RLock()
        self._patterns: List[StylePattern] = []
        self._progress = LearningProgress()
        self._snapshot: Tuple[StylePattern, ...] = ()
        self._initialized = False

    def initialize(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            self._load_patterns()
            self._load_progress()
            self._refresh_snapshot()
            self._initialized = True
            logger.info("Style store initialized with %d patterns", len(self._patterns))

    # Queries -----------------------------------------------------------------

    def patterns(self) -> List[StylePattern]:
        self.initialize()
        return [copy.deepcopy(p) for p in self._snapshot]

    def has(self, pattern_id: str) -> bool:
        return any(pattern.id == pattern_id for pattern in self.patterns())

    def get(self, pattern_id: str) -> StylePattern:
        for pattern in self.patterns():
            if pattern.id == pattern_id:
                return pattern
        raise StyleNotFoundError(pattern_id)

    def style_for(self, content_type: str, industry: str) -> StylePattern:
        industry_style = INDUSTRY_STYLES.get(industry, {})
        now = self.clock()
        pattern = _brand_pattern(
            pattern_id=f"brand:{industry}:{content_type}",
            name=f"{BRAND_NAME} B2B {industry} {content_type} Style",
            source=BRAND_SOURCE,
            confidence=BRAND_STYLE_CONFIDENCE,
            now=now,
            light_text=True,
            max_width=True,
        )
        if "accent" in industry_style:
            pattern.colors.accent = industry_style["accent"]
        if "patterns" in industry_style:
            pattern.brand_elements.patterns = list(industry_style["patterns"])
        return pattern

    def recommendations_for(self, content_type: str, industry: str) -> List[StylePattern]:
        content_key = content_type.lower()
        industry_key = industry.lower()
        relevant = [
            pattern
            for pattern in self.patterns()
            if pattern.confidence > RECOMMENDATION_THRESHOLD
            and (content_key in pattern.name.lower() or industry_key in pattern.name.lower())
        ]
        if not relevant:
            relevant.append(self.style_for(content_type, industry))
        return relevant

    def find_matching(self, content_type: str, industry: Optional[str] = None) -> List[StylePattern]:
        """
        Catalog patterns mentioning the content type (and industry, when given)
        in their name or source, best success rate first.
        """
        content_key = content_type.lower()
        industry_key = industry.lower() if industry else None
        matches = []
        for pattern in self.patterns():
            haystack = f"{pattern.name} {pattern.source}".lower()
            if content_key not in haystack:
                continue
            if industry_key and industry_key not in haystack:
                continue
            matches.append(pattern)
        return sorted(matches, key=lambda p: p.success_rate, reverse=True)

    def progress(self) -> LearningProgress:
        self.initialize()
        with self._lock:
            return copy.deepcopy(self._progress)

    def insights(self) -> List[str]:
        return generate_learning_insights(self.progress())

    # Mutations ---------------------------------------------------------------

    def process_upload(
        self,
        file: UploadedFile,
        industry: Optional[str] = None,
    ) -> Tuple[List[StylePattern], List[str]]:
        if not file.name:
            raise ValueError("Uploaded file must have a name")
        if not file.content_type:
            raise ValueError("Uploaded file must declare a content type")

        self.initialize()
        extractor = select_extractor(file.content_type)

        with self._lock:
            now = self.clock()
            new_patterns: List[StylePattern] = []
            if extractor is None:
                logger.warning(
                    "No extraction strategy for %s (%s)", file.name, file.content_type
                )
            else:
                new_patterns.append(extractor(file, self.id_factory(), now))

            # Build the next catalog and progress aside; commit both together.
            catalog = self._patterns + new_patterns
            progress = copy.deepcopy(self._progress)
            progress.total_uploads += 1
            progress.learned_patterns += len(new_patterns)
            progress.last_learning = now
            if catalog:
                progress.style_confidence = sum(p.confidence for p in catalog) / len(catalog)
            if industry and new_patterns:
                _record_industry_style(progress, industry, new_patterns)

            self._patterns = catalog
            self._progress = progress
            self._persist()
            self._refresh_snapshot()
            insights = generate_learning_insights(progress)

        logger.info("Learned %d pattern(s) from %s", len(new_patterns), file.name)
        return [copy.deepcopy(p) for p in new_patterns], insights

    def adjust(self, pattern_id: str, adjustments: Mapping[str, Any]) -> StylePattern:
        adjustments = _normalize_adjustments(adjustments)

        self.initialize()
        with self._lock:
            pattern = self._find(pattern_id)
            staged = copy.deepcopy(pattern)
            for name, value in adjustments.items():
                _overlay(staged, name, value)

            # Apply only once every field overlaid cleanly.
            for f in fields(StylePattern):
                setattr(pattern, f.name, getattr(staged, f.name))
            pattern.type = "adjusted"
            pattern.last_used = self.clock()
            self._progress.improvements.append(
                f"Style adjusted: {adjustments.get('name') or 'Custom adjustment'}"
            )
            self._persist()
            self._refresh_snapshot()
            return copy.deepcopy(pattern)

    def mark_used(self, pattern_id: str) -> None:
        self.initialize()
        with self._lock:
            pattern = self._find(pattern_id)
            pattern.usage_count += 1
            pattern.last_used = self.clock()
            self._persist()
            self._refresh_snapshot()

    def record_outcome(self, pattern_id: str, success: bool) -> StylePattern:
        self.initialize()
        with self._lock:
            pattern = self._find(pattern_id)
            pattern.usage_count += 1
            pattern.last_used = self.clock()
            pattern.success_rate = (
                SUCCESS_ALPHA * (1.0 if success else 0.0)
                + (1 - SUCCESS_ALPHA) * pattern.success_rate
            )
            self._persist()
            self._refresh_snapshot()
            return copy.deepcopy(pattern)

    def combine(self, styles: Sequence[StylePattern]) -> StylePattern:
        if not styles:
            raise ValueError("No styles to combine")
        if len(styles) == 1:
            return styles[0]

        most_successful = max(styles, key=lambda s: s.success_rate)
        most_compliant = max(styles, key=lambda s: s.brand_compliance)
        color_source = next((s for s in styles if s.brand_compliance > 0.9), styles[0])
        now = self.clock()

        return StylePattern(
            id=self.id_factory(),
            name="Combined Style",
            type="combined",
            source="Combined from multiple sources",
            confidence=sum(s.confidence for s in styles) / len(styles),
            colors=copy.deepcopy(color_source.colors),
            typography=copy.deepcopy(most_successful.typography),
            layout=copy.deepcopy(most_successful.layout),
            brand_elements=copy.deepcopy(most_compliant.brand_elements),
            created_at=now,
            last_used=now,
            usage_count=0,
            success_rate=sum(s.success_rate for s in styles) / len(styles),
            brand_compliance=most_compliant.brand_compliance,
        )

    # Internals ---------------------------------------------------------------

    def _find(self, pattern_id: str) -> StylePattern:
        for pattern in self._patterns:
            if pattern.id == pattern_id:
                return pattern
        raise StyleNotFoundError(pattern_id)

    def _refresh_snapshot(self) -> None:
        self._snapshot = tuple(copy.deepcopy(p) for p in self._patterns)

    def _load_patterns(self) -> None:
        try:
            raw = self.kv_store.get(PATTERNS_NAMESPACE)
            if raw:
                self._patterns = [StylePattern.from_dict(item) for item in json.loads(raw)]
        except PERSISTENCE_ERRORS:
            logger.exception("Failed to load style patterns; starting with an empty catalog")
            self._patterns = []

    def _load_progress(self) -> None:
        try:
            raw = self.kv_store.get(PROGRESS_NAMESPACE)
            if raw:
                self._progress = LearningProgress.from_dict(json.loads(raw))
        except PERSISTENCE_ERRORS:
            logger.exception("Failed to load learning progress; starting fresh")
            self._progress = LearningProgress()

    def _persist(self) -> None:
        try:
            payload = json.dumps([p.to_dict() for p in self._patterns], indent=2)
            self.kv_store.set(PATTERNS_NAMESPACE, payload.encode("utf-8"))
        except PERSISTENCE_ERRORS:
            logger.exception("Failed to save style patterns")
        try:
            payload = json.dumps(self._progress.to_dict(), indent=2)
            self.kv_store.set(PROGRESS_NAMESPACE, payload.encode("utf-8"))
        except PERSISTENCE_ERRORS:
            logger.exception("Failed to save learning progress")


def _record_industry_style(
    progress: LearningProgress, industry: str, patterns: List[StylePattern]
) -> None:
    industry_style = INDUSTRY_STYLES.get(industry, {})
    summary = progress.industry_styles.setdefault(
        industry,
        {
            "accent": industry_style.get("accent", BRAND_COLORS["accent"]),
            "patterns": list(industry_style.get("patterns", BRAND_ELEMENTS["patterns"])),
            "pattern_ids": [],
        },
    )
    summary["pattern_ids"].extend(p.id for p in patterns)


def _normalize_adjustments(adjustments: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate an adjustment mapping and coerce scores to float.

    Raises ValueError for unknown fields, non-text names, scores that are
    not numbers in [0, 1], and descriptors that are not mappings of known keys.
    """
    unknown = set(adjustments) - ADJUSTABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot adjust fields: {', '.join(sorted(unknown))}")

    normalized: Dict[str, Any] = {}
    for name, value in adjustments.items():
        if name in TEXT_FIELDS:
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string")
            normalized[name] = value
        elif name in SCORE_FIELDS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {type(value).__name__}")
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1]")
            normalized[name] = float(value)
        else:
            if not isinstance(value, Mapping):
                raise ValueError(f"{name} must be a mapping of fields to overlay")
            normalized[name] = dict(value)
    return normalized


def _overlay(pattern: StylePattern, name: str, value: Any) -> None:
    if name not in DESCRIPTOR_FIELDS:
        setattr(pattern, name, value)
        return
    # Nested descriptor: overlay only the keys provided.
    current = getattr(pattern, name)
    valid = {f.name for f in fields(current)}
    unknown = set(value) - valid
    if unknown:
        raise ValueError(f"Unknown {name} fields: {', '.join(sorted(unknown))}")
    for key, item in value.items():
        setattr(current, key, item)
