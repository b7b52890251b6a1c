from __future__ import annotations

import re

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def validate_time(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


def normalize_code(value: str) -> str:
    code = value.strip()
    if not CODE_PATTERN.match(code):
        raise ValueError("Codes may contain only letters, digits, '-' and '_'")
    return code


def normalize_codes(values: list[str]) -> list[str]:
    return [normalize_code(item) for item in values]
