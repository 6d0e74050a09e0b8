"""Keyword-based furniture type detection."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class FurnitureType:
    id: str
    name: str
    keywords: tuple[str, ...]


FURNITURE_TYPES: tuple[FurnitureType, ...] = (
    FurnitureType("sofa", "Sofa", ("sofa", "couch", "canapé", "sofabett", "settee", "divan")),
    FurnitureType("table", "Table", ("table", "tisch", "couchtisch", "esstisch", "beistelltisch", "console table")),
    FurnitureType("chair", "Chair", ("chair", "stuhl", "armchair", "sessel", "esstuhl", "recliner")),
    FurnitureType("bed", "Bed", ("bed", "bett", "bettgestell", "mattress", "matratze", "daybed")),
    FurnitureType("lamp", "Lamp", ("lamp", "lampe", "deckenlampe", "tischlampe", "stehlampe", "leuchte")),
    FurnitureType("shelf", "Shelf", ("shelf", "regal", "wandregal", "floating shelf")),
    FurnitureType("cabinet", "Cabinet", ("cabinet", "schrank", "display cabinet")),
    FurnitureType("desk", "Desk", ("desk", "schreibtisch", "computer desk")),
    FurnitureType("mirror", "Mirror", ("mirror", "spiegel", "wandspiegel")),
    FurnitureType("rug", "Rug", ("rug", "teppich", "carpet", "runner")),
    FurnitureType("ottoman", "Ottoman", ("ottoman", "footstool", "pouf", "hocker")),
    FurnitureType("bench", "Bench", ("bench", "sitzbank")),
    FurnitureType("stool", "Stool", ("stool", "bar stool", "barhocker", "tabouret")),
    FurnitureType("nightstand", "Nightstand", ("nightstand", "bedside table", "nachttisch")),
    FurnitureType("dresser", "Dresser", ("dresser", "chest of drawers", "kommode")),
    FurnitureType("wardrobe", "Wardrobe", ("wardrobe", "armoire", "kleiderschrank")),
    FurnitureType("bookcase", "Bookcase", ("bookcase", "bookshelf", "bücherregal")),
    FurnitureType("tv_stand", "TV Stand", ("tv stand", "tv unit", "fernsehschrank", "tv-board", "lowboard")),
    FurnitureType("sideboard", "Sideboard", ("sideboard", "buffet", "anrichte", "credenza")),
)

OTHER = FurnitureType("other", "Other", ())


def detect_product_type(url: str, title: str = "", description: str = "") -> str:
    """Return the furniture type id with the most keyword hits, or "other"."""
    content = f"{url} {title} {description}".lower()
    best_id, best_score = OTHER.id, 0
    for furniture_type in FURNITURE_TYPES:
        score = sum(len(re.findall(re.escape(k), content)) for k in furniture_type.keywords)
        if score > best_score:
            best_id, best_score = furniture_type.id, score
    return best_id


def product_type_name(type_id: str) -> str:
    for furniture_type in FURNITURE_TYPES:
        if furniture_type.id == (type_id or "").lower():
            return furniture_type.name
    return OTHER.name
