"""Release retention policy based on semantic version and age."""

import calendar
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from autoassign.nodes.schemas import Release

VERSION_PATTERN = re.compile(r"^[vV]?(\d+)\.(\d+)\.(\d+)$")

# Releases kept for the newest, second and third newest major versions
KEEP_PER_MAJOR = (5, 3, 2)
MAX_MAJOR_VERSIONS = len(KEEP_PER_MAJOR)

# Older majors lose releases past this age; anything younger than the floor stays
OLDER_MAJOR_MAX_AGE_MONTHS = 6
RECENT_RELEASE_MONTHS = 1


def parse_version(tag: Optional[str]) -> Optional[tuple[int, int, int]]:
    """Parse ``vMAJOR.MINOR.PATCH`` (prefix optional) into an int tuple."""
    if not tag or not isinstance(tag, str):
        return None
    match = VERSION_PATTERN.match(tag)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def _subtract_months(value: datetime, months: int) -> datetime:
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def is_older_than_months(
    published_at: Optional[datetime], months: int, now: Optional[datetime] = None
) -> bool:
    """True when ``published_at`` lies before ``now`` minus ``months`` months.

    Unknown dates are treated as recent.
    """
    if published_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return published_at < _subtract_months(now, months)


def filter_releases_to_keep(
    releases: Sequence[Release], now: Optional[datetime] = None
) -> list[Release]:
    """Return the releases that survive the retention policy.

    - at most 3 major versions are kept
    - newest major: its 5 highest versions, regardless of age
    - 2nd and 3rd majors: their 3 and 2 highest versions, minus any older
      than 6 months
    - any release younger than a month is always kept

    Releases whose tag is not a version are never kept. Input order is
    preserved.
    """
    if not releases:
        return []

    now = now or datetime.now(timezone.utc)
    versioned = [
        (version, release)
        for release in releases
        if (version := parse_version(release.tag_name)) is not None
    ]
    versioned.sort(key=lambda item: item[0], reverse=True)

    by_major: dict[int, list[Release]] = {}
    for version, release in versioned:
        by_major.setdefault(version[0], []).append(release)

    keep: set[str] = {
        release.tag_name
        for _, release in versioned
        if not is_older_than_months(release.published_at, RECENT_RELEASE_MONTHS, now)
    }

    top_majors = sorted(by_major, reverse=True)[:MAX_MAJOR_VERSIONS]
    for rank, major in enumerate(top_majors):
        selected = by_major[major][: KEEP_PER_MAJOR[rank]]
        if rank > 0:
            selected = [
                release
                for release in selected
                if not is_older_than_months(
                    release.published_at, OLDER_MAJOR_MAX_AGE_MONTHS, now
                )
            ]
        keep.update(release.tag_name for release in selected)

    return [release for release in releases if release.tag_name in keep]


@dataclass
class ReleaseCleanupPlan:
    """Releases to keep and to delete."""

    keep: list[Release] = field(default_factory=list)
    delete: list[Release] = field(default_factory=list)


def plan_release_cleanup(
    releases: Sequence[Release], now: Optional[datetime] = None
) -> ReleaseCleanupPlan:
    """Split releases into keep/delete lists.

    Releases with unparseable tags are left out of both lists.
    """
    kept = filter_releases_to_keep(releases, now)
    kept_tags = {release.tag_name for release in kept}
    deletable = [
        release
        for release in releases
        if release.tag_name not in kept_tags and parse_version(release.tag_name)
    ]
    return ReleaseCleanupPlan(keep=kept, delete=deletable)


def release_age_days(release: Release, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days since publication, or None when unknown."""
    if release.published_at is None:
        return None
    now = now or datetime.now(timezone.utc)
    published = release.published_at
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return (now - published).days
