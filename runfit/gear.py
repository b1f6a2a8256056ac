"""
Closed catalog of running gear.

Every item the outfit pipeline can recommend lives here with its display
label and category. Looking up a key that is not in the catalog raises
KeyError: the pipeline never invents gear.
"""

from .models import GearItem

# key: (label, category)
CATALOG: dict[str, tuple[str, str]] = {
    # Tops
    "sports_bra": ("Sports bra", "Tops"),
    "tank_top": ("Tank top", "Tops"),
    "short_sleeve": ("Short-sleeve tech tee", "Tops"),
    "long_sleeve": ("Long-sleeve base", "Tops"),
    # Outerwear
    "vest": ("Light running vest", "Outerwear"),
    "light_jacket": ("Light jacket", "Outerwear"),
    "insulated_jacket": ("Insulated jacket", "Outerwear"),
    "windbreaker": ("Windbreaker", "Outerwear"),
    "rain_shell": ("Packable rain shell", "Outerwear"),
    # Bottoms
    "split_shorts": ("Split shorts", "Bottoms"),
    "shorts": ("Shorts", "Bottoms"),
    "tights": ("Running tights", "Bottoms"),
    "thermal_tights": ("Thermal tights", "Bottoms"),
    # Headwear
    "cap": ("Cap", "Headwear"),
    "brim_cap": ("Brimmed cap/visor", "Headwear"),
    "headband": ("Ear band", "Headwear"),
    "beanie": ("Beanie", "Headwear"),
    "balaclava": ("Balaclava", "Headwear"),
    # Hands
    "light_gloves": ("Light gloves", "Hands"),
    "medium_gloves": ("Medium gloves", "Hands"),
    "mittens": ("Mittens", "Hands"),
    "mittens_liner": ("Glove liner (under mittens)", "Hands"),
    # Accessories
    "arm_sleeves": ("Arm sleeves", "Accessories"),
    "neck_gaiter": ("Neck gaiter", "Accessories"),
    "sunglasses": ("Sunglasses", "Accessories"),
    "sunscreen": ("Sunscreen", "Accessories"),
    # Nutrition
    "hydration": ("Bring water", "Nutrition"),
    "energy_nutrition": ("Energy gels/chews", "Nutrition"),
    # Care
    "anti_chafe": ("Anti-chafe balm", "Care"),
    # Socks
    "light_socks": ("Light socks", "Socks"),
    "heavy_socks": ("Heavy socks", "Socks"),
    "double_socks": ("Double socks (layered)", "Socks"),
}

# Warmest first
GLOVE_TIERS = ["mittens", "medium_gloves", "light_gloves"]
GLOVE_KEYS = frozenset(GLOVE_TIERS + ["mittens_liner"])
SOCK_LEVELS = ["light_socks", "heavy_socks", "double_socks"]

# (winner, loser): both present means the loser is dropped
CONFLICT_PAIRS = [
    ("brim_cap", "cap"),
    ("rain_shell", "windbreaker"),
]

HAND_LABELS = ["None", "Light gloves", "Medium gloves", "Mittens", "Mittens + liner"]

PERFORMANCE_ORDER = [
    "sports_bra", "tank_top", "short_sleeve", "long_sleeve",
    "vest", "light_jacket", "insulated_jacket",
    "split_shorts", "shorts", "tights", "thermal_tights",
    "cap", "brim_cap", "headband", "beanie", "balaclava", "arm_sleeves",
    "light_gloves", "medium_gloves", "mittens", "mittens_liner",
    "windbreaker", "rain_shell", "sunglasses", "sunscreen",
    "hydration", "energy_nutrition", "anti_chafe",
    "light_socks", "heavy_socks", "double_socks", "neck_gaiter",
]

COMFORT_ORDER = [
    "sports_bra", "short_sleeve", "long_sleeve", "tank_top",
    "light_jacket", "insulated_jacket", "vest",
    "tights", "thermal_tights", "shorts", "split_shorts",
    "beanie", "balaclava", "headband", "cap", "brim_cap", "arm_sleeves",
    "mittens", "mittens_liner", "medium_gloves", "light_gloves",
    "heavy_socks", "light_socks", "double_socks", "neck_gaiter",
    "windbreaker", "rain_shell", "sunglasses", "sunscreen",
    "hydration", "energy_nutrition", "anti_chafe",
]


def gear_item(key: str, cold_hands: bool = False, effort_specific: bool = False) -> GearItem:
    label, category = CATALOG[key]
    return GearItem(key=key, label=label, category=category, cold_hands=cold_hands,
                    effort_specific=effort_specific)


def gear_label(key: str) -> str:
    return CATALOG[key][0]


def sort_keys(keys, order: list[str]) -> list[str]:
    """Sort gear keys by a display order; unknown keys raise KeyError."""
    rank = {key: i for i, key in enumerate(order)}
    for key in keys:
        if key not in CATALOG:
            raise KeyError(key)
    return sorted(keys, key=lambda k: (rank.get(k, len(order)), k))


def hands_level_from_gear(keys) -> int:
    """Hand protection level 0 (bare) .. 4 (mittens + liner)."""
    keys = set(keys)
    if "mittens" in keys and "mittens_liner" in keys:
        return 4
    if "mittens" in keys:
        return 3
    if "medium_gloves" in keys:
        return 2
    if "light_gloves" in keys:
        return 1
    return 0


def hands_label(level: int) -> str:
    return HAND_LABELS[max(0, min(len(HAND_LABELS) - 1, level))]
