from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

log = logging.getLogger("config")

FIELDS = ("artist", "track", "album")

# Last.fm: "The track must be longer than 30 seconds."
SHORT_TRACK_FLOOR = 30


@dataclass(frozen=True)
class RegexRule:
    pattern: re.Pattern
    replace: str
    fields: frozenset[str]

    def applies_to(self, name: str) -> bool:
        return name in self.fields


@dataclass(frozen=True)
class Policy:
    """Scrobbling rules, fixed for the lifetime of the poll loop."""

    poll_interval: int = 2
    min_playback_duration: int = 240
    min_playback_percent: int = 50
    blacklist: tuple[str, ...] = ()
    regex_rules: tuple[RegexRule, ...] = field(default_factory=tuple)

    def threshold(self, track_duration: float | None) -> float:
        """Seconds of listening needed before a play counts as a scrobble."""
        if not track_duration or track_duration <= SHORT_TRACK_FLOOR:
            return float(self.min_playback_duration)
        return min(float(self.min_playback_duration),
                   track_duration * self.min_playback_percent / 100)


def compile_rules(raw_rules: Iterable[dict[str, Any]]) -> tuple[RegexRule, ...]:
    """Compile configured match/replace rules, skipping the broken ones."""
    parsed = []
    for raw in raw_rules:
        expression = raw.get("match", "")
        if not expression:
            log.warning("match/replace rule without an expression; skipping")
            continue
        replacement = str(raw.get("replace", ""))
        try:
            pattern = re.compile(expression)
            # compiles the replacement template, catching bad group references
            pattern.sub(replacement, "")
        except (re.error, TypeError) as e:
            log.warning("error compiling match/replace expression %r: %s", expression, e)
            continue

        fields = frozenset(name for name in FIELDS if raw.get(name))
        if not fields:
            log.warning("match/replace expression %r targets no field; skipping", expression)
            continue

        parsed.append(RegexRule(pattern=pattern, replace=replacement, fields=fields))

    log.debug("parsed %d match/replace expressions", len(parsed))
    return tuple(parsed)
