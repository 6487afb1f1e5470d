# core/thresholds.py

from enum import Enum
from typing import Dict, Optional
from .models import CropThresholds

class CropType(str, Enum):
    TOMATO = "Tomato"
    OLIVE = "Olive"
    STRAWBERRY = "Strawberry"
    WHEAT = "Wheat"
    CITRUS = "Citrus"

CROP_THRESHOLDS: Dict[str, CropThresholds] = {
    CropType.TOMATO.value: CropThresholds(min_moisture_pct=60, max_temp_c=30),
    CropType.OLIVE.value: CropThresholds(min_moisture_pct=30, max_temp_c=40),
    CropType.STRAWBERRY.value: CropThresholds(min_moisture_pct=70, max_temp_c=25),
    CropType.WHEAT.value: CropThresholds(min_moisture_pct=40, max_temp_c=35),
    CropType.CITRUS.value: CropThresholds(min_moisture_pct=50, max_temp_c=35),
}

DEFAULT_CROP = CropType.TOMATO.value

def get_thresholds(crop_type: Optional[str], default_crop: str = DEFAULT_CROP) -> CropThresholds:
    """Looks up a crop's thresholds; unknown crops get the default entry."""
    if crop_type:
        # Accept "tomato", " Tomato " and the like.
        key = crop_type.strip().capitalize()
        if key in CROP_THRESHOLDS:
            return CROP_THRESHOLDS[key]
    return CROP_THRESHOLDS.get(default_crop, CROP_THRESHOLDS[DEFAULT_CROP])
