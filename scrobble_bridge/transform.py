"""
Metadata transformer.

- Drops candidates that hit the blacklist (case-insensitive substring match on
  any artist, the track or the album).
- Rewrites the remaining ones with the configured regex rules, in order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from .policy import Policy, RegexRule
from .scrobble import Scrobble

log = logging.getLogger("transform")


class Transformer:
    def __init__(self, policy: Policy):
        self.blacklist = tuple(entry.casefold() for entry in policy.blacklist if entry)
        self.rules = policy.regex_rules

    def is_blacklisted(self, candidate: Scrobble) -> bool:
        values = [*candidate.artists, candidate.track, candidate.album]
        for value in values:
            folded = value.casefold()
            if any(entry in folded for entry in self.blacklist):
                return True
        return False

    def transform(self, candidate: Scrobble) -> Scrobble | None:
        if self.is_blacklisted(candidate):
            return None

        artists = list(candidate.artists)
        track = candidate.track
        album = candidate.album
        for rule in self.rules:
            try:
                new_artists = [_apply(rule, a) for a in artists] if rule.applies_to("artist") else artists
                new_track = _apply(rule, track) if rule.applies_to("track") else track
                new_album = _apply(rule, album) if rule.applies_to("album") else album
            except re.error as e:
                # e.g. a back-reference to a group the pattern doesn't have
                log.warning("skipping match/replace expression %r: %s", rule.pattern.pattern, e)
                continue
            artists, track, album = new_artists, new_track, new_album

        return replace(candidate, artists=tuple(artists), track=track, album=album)


def _apply(rule: RegexRule, value: str) -> str:
    return rule.pattern.sub(rule.replace, value).strip()
