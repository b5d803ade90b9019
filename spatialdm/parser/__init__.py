"""Player input parsing for movement.

Main Components:
    - detect / MovementIntentDetector: ordered keyword classification
    - MovementIntent / MovementActionType: detection result types
    - TargetResolver: named target to destination position
"""

from spatialdm.parser.movement_intent import (
    KEYWORD_GROUPS,
    KeywordGroup,
    MovementActionType,
    MovementIntent,
    MovementIntentDetector,
    detect,
)
from spatialdm.parser.target_resolver import TargetCheck, TargetResolver, position_at_distance

__all__ = [
    "KEYWORD_GROUPS",
    "KeywordGroup",
    "MovementActionType",
    "MovementIntent",
    "MovementIntentDetector",
    "detect",
    "TargetCheck",
    "TargetResolver",
    "position_at_distance",
]
