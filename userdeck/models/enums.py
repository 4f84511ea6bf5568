"""Enumerations stored on user rows."""

from enum import Enum


class OnlineStatus(str, Enum):
    ONLINE = "online"
    BUSY = "busy"
    IDLE = "idle"
    DO_NOT_DISTURB = "do_not_disturb"
    INVISIBLE = "invisible"
    OFFLINE = "offline"


class AuthProvider(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"
    MICROSOFT = "microsoft"
    FACEBOOK = "facebook"
    GITHUB = "github"
