"""
Built-in chat actions.
"""

from .attack import AttackAction
from .base import ActionContext, BaseAction
from .challenge import ChallengeAction, PresentationHook
from .defend import DefendAction
from .flee import FleeAction
from .hide import HideAction

__all__ = [
    "ActionContext",
    "BaseAction",
    "AttackAction",
    "ChallengeAction",
    "PresentationHook",
    "DefendAction",
    "FleeAction",
    "HideAction",
]
