"""
Brand guideline defaults and the hand-maintained industry tables.

Every table here is configuration, not derived data. Bump `TABLES_VERSION`
when any of them changes; every StylePattern records the version it was
built from as `tables_version`, and it is persisted with the catalog.
"""

from typing import Dict, List

TABLES_VERSION = "1"

BRAND_NAME = "e&"

BRAND_COLORS: Dict[str, str] = {
    "primary": "#6100ED",
    "secondary": "#02D9C7",
    "accent": "#FF6B35",
    "background": "#FFFFFF",
    "text": "#1A1A1A",
    "light_text": "#666666",
    "success": "#10B981",
    "warning": "#F59E0B",
    "error": "#EF4444",
}

BRAND_TYPOGRAPHY = {
    "primary": "Helvetica Neue, Arial, sans-serif",
    "heading": "Helvetica Neue Bold, Arial, sans-serif",
    "sizes": {"small": 12, "medium": 14, "large": 16, "xlarge": 20, "xxlarge": 24},
    "weights": {"normal": 400, "medium": 500, "bold": 700},
}

BRAND_LAYOUT = {
    "spacing": 16,
    "border_radius": 8,
    "max_width": 1200,
}

BRAND_ELEMENTS = {
    "logo": BRAND_NAME,
    "patterns": ["geometric", "minimal", "professional"],
}

# Accent colour and decorative pattern set applied on top of the brand defaults.
INDUSTRY_STYLES: Dict[str, Dict] = {
    "retail": {"accent": "#FF6B35", "patterns": ["shopping", "consumer", "vibrant"]},
    "education": {"accent": "#3B82F6", "patterns": ["learning", "academic", "clean"]},
    "healthcare": {"accent": "#10B981", "patterns": ["medical", "care", "professional"]},
    "finance": {"accent": "#8B5CF6", "patterns": ["financial", "secure", "premium"]},
    "technology": {"accent": "#06B6D4", "patterns": ["tech", "digital", "modern"]},
    "manufacturing": {"accent": "#F59E0B", "patterns": ["industrial", "robust", "efficient"]},
    "government": {"accent": "#6B7280", "patterns": ["official", "formal", "authoritative"]},
    "hospitality": {"accent": "#F97316", "patterns": ["welcoming", "service", "comfortable"]},
    "logistics": {"accent": "#84CC16", "patterns": ["movement", "efficiency", "connectivity"]},
    "real_estate": {"accent": "#DC2626", "patterns": ["property", "growth", "investment"]},
}

# Preferred media, topical focus and default urgency used by the decision rules.
INDUSTRY_PROFILES: Dict[str, Dict] = {
    "retail": {
        "media": ["image", "brochure"],
        "focus": "customer experience and sales",
        "urgency": "high",
    },
    "education": {
        "media": ["whitepaper", "presentation"],
        "focus": "learning outcomes and technology",
        "urgency": "medium",
    },
    "healthcare": {
        "media": ["whitepaper", "brochure"],
        "focus": "compliance and security",
        "urgency": "high",
    },
    "government": {
        "media": ["whitepaper", "presentation"],
        "focus": "security and compliance",
        "urgency": "high",
    },
}

DEFAULT_INDUSTRY_PROFILE: Dict = {
    "media": ["brochure"],
    "focus": "general business solutions",
    "urgency": "medium",
}

# Background colours (hex, no leading '#') for the placeholder image service.
PLACEHOLDER_COLORS: Dict[str, str] = {
    "retail": "e30613",
    "education": "2E7D32",
    "healthcare": "1976D2",
    "finance": "7B1FA2",
    "manufacturing": "F57C00",
    "government": "5D4037",
    "hospitality": "C62828",
    "logistics": "2E7D32",
    "real_estate": "795548",
    "tech_telecom": "e30613",
}

# Default icon tags drawn when a render request names no visual elements.
INDUSTRY_ELEMENTS: Dict[str, List[str]] = {
    "tech_telecom": ["office_building", "network", "server"],
    "retail": ["shop", "pos_system", "customer"],
    "education": ["school", "student", "laptop"],
    "healthcare": ["hospital", "medical", "patient"],
    "general": ["office_building", "network"],
}


def industry_profile(industry: str) -> Dict:
    return INDUSTRY_PROFILES.get(industry, DEFAULT_INDUSTRY_PROFILE)


def elements_for_industry(industry: str) -> List[str]:
    return list(INDUSTRY_ELEMENTS.get(industry, INDUSTRY_ELEMENTS["general"]))
