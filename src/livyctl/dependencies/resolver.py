"""Pure functions over the desired dependency set and a session snapshot."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import PurePath

from livyctl.shared.enums import DependencyCategory, DependencyStatus
from livyctl.shared.models import DependencyEntry, Session

# Fixed display and resolution order.
CATEGORIES: tuple[DependencyCategory, ...] = (
    DependencyCategory.PY_FILES,
    DependencyCategory.JARS,
    DependencyCategory.FILES,
    DependencyCategory.ARCHIVES,
)

REMOTE_SCHEMES: tuple[str, ...] = ("hdfs://", "webhdfs://")

Desired = Mapping[DependencyCategory, Sequence[str]]


def resolve_entries(desired: Desired, session: Session | None) -> list[DependencyEntry]:
    """Classify every desired locator as active or pending.

    A locator is ``active`` only when the same category of ``session`` lists
    it verbatim; with no session every entry is ``pending``.
    """
    entries: list[DependencyEntry] = []
    for category in CATEGORIES:
        live = set(session.locators(category)) if session is not None else set()
        for locator in desired.get(category, ()):
            status = DependencyStatus.ACTIVE if locator in live else DependencyStatus.PENDING
            entries.append(DependencyEntry(locator=locator, category=category, status=status))
    return entries


def pending_entries(desired: Desired, session: Session | None) -> list[DependencyEntry]:
    return [e for e in resolve_entries(desired, session) if e.status is DependencyStatus.PENDING]


def infer_category(filename: str) -> DependencyCategory:
    """Guess the session field for a file from its extension."""
    suffix = PurePath(filename).suffix.lower()
    if suffix == ".jar":
        return DependencyCategory.JARS
    if suffix in (".py", ".egg"):
        return DependencyCategory.PY_FILES
    return DependencyCategory.FILES


def with_locator(desired: Desired, category: DependencyCategory, locator: str) -> dict[DependencyCategory, list[str]]:
    """Return a copy of ``desired`` with ``locator`` appended to ``category`` (no duplicates)."""
    updated = _copy(desired)
    if locator not in updated[category]:
        updated[category].append(locator)
    return updated


def without_locator(
    desired: Desired, category: DependencyCategory, locator: str
) -> dict[DependencyCategory, list[str]]:
    updated = _copy(desired)
    updated[category] = [x for x in updated[category] if x != locator]
    return updated


def is_remote_locator(locator: str) -> bool:
    return locator.startswith(REMOTE_SCHEMES)


def _copy(desired: Desired) -> dict[DependencyCategory, list[str]]:
    return {category: list(desired.get(category, ())) for category in CATEGORIES}
