from typing import Optional

# 403 usually means the resource is there but access-controlled
MATCH_STATUSES = (200, 403)


def is_match(status: Optional[int]) -> bool:
    return status in MATCH_STATUSES


def describe_status(status: int) -> str:
    if status == 200:
        return "found"
    if status == 403:
        return "forbidden (exists)"
    return "not found"
