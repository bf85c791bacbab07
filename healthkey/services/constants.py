"""
Constants and shared data for the timeline services.
"""
from datetime import timedelta
from typing import Dict, List

# Storage keys
REGISTRY_KEY = "healthkey_registry_v1"
EVENTS_KEY = "healthkey_events_v3"
LEGACY_EVENTS_KEY = "healthkey_events_v2"
DAYMETA_KEY = "healthkey_daymeta_v1"

# Tap pairing
DOUBLE_TAP_THRESHOLD = timedelta(milliseconds=400)
PAIRING_WINDOW = timedelta(minutes=90)

# Calendar export
DEFAULT_EVENT_DURATION = timedelta(minutes=15)
CALENDAR_MEDIA_TYPE = "text/calendar"
CALENDAR_PRODID = "-//HealthKey//Timeline Export//ZH"

BUILTIN_CATEGORIES: List[Dict[str, str]] = [
    {"id": "diet", "label": "饮食", "style": "#ff9f43"},
    {"id": "excretion", "label": "排泄", "style": "#f368e0"},
    {"id": "sleep", "label": "睡眠", "style": "#54a0ff"},
    {"id": "activity", "label": "活动", "style": "#1dd1a1"},
]

BUILTIN_EVENT_TYPES: List[Dict[str, str]] = [
    # Diet
    {"id": "breakfast", "label": "早餐", "category_id": "diet"},
    {"id": "lunch", "label": "午餐", "category_id": "diet"},
    {"id": "dinner", "label": "晚餐", "category_id": "diet"},
    {"id": "snack", "label": "零食", "category_id": "diet"},
    {"id": "fruit", "label": "水果", "category_id": "diet"},
    {"id": "supplement", "label": "营养品", "category_id": "diet"},
    {"id": "water", "label": "喝水", "category_id": "diet"},
    # Excretion
    {"id": "pee", "label": "排尿", "category_id": "excretion"},
    {"id": "poop", "label": "排便", "category_id": "excretion"},
    # Sleep
    {"id": "sleep_start", "label": "入睡", "category_id": "sleep"},
    {"id": "wake", "label": "醒来", "category_id": "sleep"},
    {"id": "getup", "label": "起床", "category_id": "sleep"},
    # Activity
    {"id": "exercise", "label": "运动", "category_id": "activity"},
    {"id": "laugh", "label": "大笑", "category_id": "activity"},
    {"id": "sex", "label": "性爱", "category_id": "activity"},
]

# Labels used when rendering extra fields, in description order
EXTRA_FIELD_LABELS = {
    "satiety_percent": "饱腹感",
    "water_ml": "喝水",
    "activity_intensity": "活动强度",
    "sleep_depth": "睡眠深度",
    "excretion_color": "颜色",
    "is_abnormal": "异常",
    "note": "备注",
}

WEEKDAY_LABELS = ["周一", "周二", "周三", "周四", "周五", "周六", "周日"]

COUNT_UNIT = "次"
SUMMARY_SEPARATOR = " · "

# Severity gradient endpoints for legacy numeric excretion colors
SEVERITY_COLOR_LOW = "#fff59d"
SEVERITY_COLOR_HIGH = "#5d4037"
