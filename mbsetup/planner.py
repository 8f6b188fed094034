"""Turn a run request into an ordered list of steps."""
import re
from typing import List, Optional, Sequence

from mbsetup.errors import NotFoundError, UsageError
from mbsetup.models import RunRequest, Step

_ORDINAL_PREFIX = re.compile(r"^\d+-")


def build_request(only: Optional[str] = None, start: Optional[str] = None,
                  auto: bool = False, dry_run: bool = False) -> RunRequest:
    if only is not None and start is not None:
        raise UsageError("--only and --from cannot be combined")
    for flag, value in (("--only", only), ("--from", start)):
        if value is not None and not value.strip():
            raise UsageError(f"{flag} requires a step name")
    return RunRequest(only=only, start=start, auto=auto, dry_run=dry_run)


def resolve(ref: str, steps: Sequence[Step]) -> Step:
    """Find the step ``ref`` names.

    Tiers, each scanned in the given order, first match wins:
    exact id or full name, name without its ordinal prefix, substring of the name.
    """
    query = ref.strip().lower()
    tiers = (
        lambda step: query in (step.id, step.key),
        lambda step: query == _ORDINAL_PREFIX.sub("", step.key),
        lambda step: query in step.key,
    )
    for matches in tiers:
        for step in steps:
            if matches(step):
                return step
    raise NotFoundError(ref)


def plan(request: RunRequest, registry: Sequence[Step], reverse: bool = False) -> List[Step]:
    """Select the steps for ``request``.

    With ``reverse`` the registry is walked backwards, both for planning and
    for resolving references.
    """
    ordered = list(reversed(registry)) if reverse else list(registry)
    if request.only is not None:
        return [resolve(request.only, ordered)]
    if request.start is not None:
        first = resolve(request.start, ordered)
        return ordered[ordered.index(first):]
    return ordered


def next_step(step: Step, registry: Sequence[Step]) -> Optional[Step]:
    """Registry successor of ``step``, the resume point after a reboot."""
    later = [candidate for candidate in registry if candidate.id > step.id]
    return later[0] if later else None
