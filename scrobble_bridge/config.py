"""
Configuration via environment variables.

Numbers out of range fall back to their defaults with a warning; values that
cannot be parsed at all raise ConfigError.
"""

from __future__ import annotations

import json
import logging
import os
import shlex
from dataclasses import dataclass
from typing import Mapping

from .bluos import BluOSSource
from .media_control import DEFAULT_ARGUMENTS, MediaControlSource
from .notifier import Alerts, Notifier
from .notifier_desktop import DesktopNotifier
from .notifier_gotify import GotifyNotifier
from .playerctl import PlayerctlSource
from .policy import Policy, compile_rules
from .sink import Sink
from .sink_file import FileSink
from .sink_lastfm import LastFMSink
from .source import Source

log = logging.getLogger("config")

DEFAULT_POLL_INTERVAL = 2
# https://www.last.fm/api/scrobbling#when-is-a-scrobble-a-scrobble
DEFAULT_MIN_PLAYBACK_DURATION = 4 * 60
DEFAULT_MIN_PLAYBACK_PERCENT = 50

_TRUE = ("1", "true", "yes", "on")


class ConfigError(Exception):
    """The environment holds a value that cannot be used."""


@dataclass(frozen=True)
class Settings:
    policy: Policy
    notify_on_scrobble: bool = False
    notify_on_error: bool = True

    bluos_host: str | None = None
    bluos_port: int = 11000
    playerctl_enabled: bool = False
    playerctl_player: str | None = None
    media_control_command: str | None = None
    media_control_args: tuple[str, ...] = DEFAULT_ARGUMENTS

    lastfm_api_key: str | None = None
    lastfm_api_secret: str | None = None
    lastfm_session_key: str | None = None
    lastfm_username: str | None = None
    lastfm_password_md5: str | None = None
    scrobble_file: str | None = None

    notify_webhook_url: str | None = None
    notify_min_level: str = "WARNING"
    gotify_url: str | None = None
    gotify_token: str | None = None
    gotify_priority: int = 5
    gotify_min_level: str = "WARNING"
    notify_desktop: bool = False
    app_tag: str = "scrobble-bridge"


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None


def _bounded(env: Mapping[str, str], key: str, default: int, low: int, high: int) -> int:
    value = _int(env, key, default)
    if value < low or value > high:
        log.warning("invalid %s=%s, using default value %s", key, value, default)
        return default
    return value


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE


def _json_list(env: Mapping[str, str], key: str) -> list:
    raw = env.get(key)
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{key} is not valid JSON: {e}") from None
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a JSON array")
    return value


def _str(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key)
    return value.strip() if value and value.strip() else None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    blacklist = _json_list(env, "BLACKLIST")
    if not all(isinstance(entry, str) for entry in blacklist):
        raise ConfigError("BLACKLIST must be a JSON array of strings")
    raw_rules = _json_list(env, "REGEX_RULES")
    if not all(isinstance(rule, dict) for rule in raw_rules):
        raise ConfigError("REGEX_RULES must be a JSON array of objects")

    policy = Policy(
        poll_interval=_bounded(env, "POLL_INTERVAL", DEFAULT_POLL_INTERVAL, 1, 60),
        min_playback_duration=_bounded(env, "MIN_PLAYBACK_DURATION", DEFAULT_MIN_PLAYBACK_DURATION, 1, 20 * 60),
        min_playback_percent=_bounded(env, "MIN_PLAYBACK_PERCENT", DEFAULT_MIN_PLAYBACK_PERCENT, 1, 100),
        blacklist=tuple(blacklist),
        regex_rules=compile_rules(raw_rules),
    )

    notify_on_error = _bool(env, "NOTIFY_ON_ERROR", True)
    if not notify_on_error:
        log.warning("no notifications will be sent on failed scrobbles")

    media_args = tuple(shlex.split(env.get("MEDIA_CONTROL_ARGS", ""))) or DEFAULT_ARGUMENTS

    return Settings(
        policy=policy,
        notify_on_scrobble=_bool(env, "NOTIFY_ON_SCROBBLE", False),
        notify_on_error=notify_on_error,
        bluos_host=_str(env, "BLUOS_HOST"),
        bluos_port=_int(env, "BLUOS_PORT", 11000),
        playerctl_enabled=_bool(env, "PLAYERCTL_ENABLED", False),
        playerctl_player=_str(env, "PLAYERCTL_PLAYER"),
        media_control_command=_str(env, "MEDIA_CONTROL_COMMAND"),
        media_control_args=media_args,
        lastfm_api_key=_str(env, "LASTFM_API_KEY"),
        lastfm_api_secret=_str(env, "LASTFM_API_SECRET"),
        lastfm_session_key=_str(env, "LASTFM_SESSION_KEY"),
        lastfm_username=_str(env, "LASTFM_USERNAME"),
        lastfm_password_md5=_str(env, "LASTFM_PASSWORD_MD5"),
        scrobble_file=_str(env, "SCROBBLE_FILE"),
        notify_webhook_url=_str(env, "NOTIFY_WEBHOOK_URL"),
        notify_min_level=env.get("NOTIFY_MIN_LEVEL", "WARNING"),
        gotify_url=_str(env, "GOTIFY_URL"),
        gotify_token=_str(env, "GOTIFY_TOKEN"),
        gotify_priority=_int(env, "GOTIFY_PRIORITY", 5),
        gotify_min_level=env.get("GOTIFY_MIN_LEVEL", "WARNING"),
        notify_desktop=_bool(env, "NOTIFY_DESKTOP", False),
        app_tag=env.get("APP_TAG", "scrobble-bridge"),
    )


def setup_sources(settings: Settings) -> list[Source]:
    sources: list[Source] = []
    if settings.bluos_host:
        log.debug("setting up BluOS source %s:%s", settings.bluos_host, settings.bluos_port)
        sources.append(BluOSSource(settings.bluos_host, settings.bluos_port))
    if settings.playerctl_enabled:
        log.debug("setting up playerctl source")
        sources.append(PlayerctlSource(settings.playerctl_player))
    if settings.media_control_command:
        log.debug("setting up media-control source")
        sources.append(MediaControlSource(settings.media_control_command, settings.media_control_args))

    if not sources:
        log.warning("no sources configured")
    return sources


def setup_sinks(settings: Settings) -> list[Sink]:
    sinks: list[Sink] = []
    if settings.lastfm_api_key and settings.lastfm_api_secret:
        log.debug("setting up last.fm sink")
        try:
            sinks.append(LastFMSink(
                api_key=settings.lastfm_api_key,
                api_secret=settings.lastfm_api_secret,
                session_key=settings.lastfm_session_key,
                username=settings.lastfm_username,
                password_md5=settings.lastfm_password_md5,
            ))
        except Exception as e:
            log.error("error setting up last.fm sink: %s", e)
    if settings.scrobble_file:
        log.debug("setting up file sink %s", settings.scrobble_file)
        sinks.append(FileSink(settings.scrobble_file))

    if not sinks:
        log.warning("no sinks configured")
    return sinks


def setup_alerts(settings: Settings) -> Alerts:
    return Alerts([
        Notifier(settings.notify_webhook_url, min_level=settings.notify_min_level, app_tag=settings.app_tag),
        GotifyNotifier(settings.gotify_url, settings.gotify_token, min_level=settings.gotify_min_level,
                       default_priority=settings.gotify_priority, app_tag=settings.app_tag),
        DesktopNotifier(settings.notify_desktop, app_tag=settings.app_tag),
    ])
