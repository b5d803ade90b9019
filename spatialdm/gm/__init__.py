"""Narration layer: context assembly, prompts, reply interpretation and
turn orchestration.

Main Components:
    - ContextBuilder: bounded PromptContext per request
    - build_system_prompt / build_message_history: prompt rendering
    - NarrationInterpreter: structured reply parsing
    - SessionSummarizer: rolling summaries
    - DungeonMaster: end-to-end narration turn
"""

from spatialdm.gm.context_builder import ContextBuilder, build_state_snapshot
from spatialdm.gm.dungeon_master import DungeonMaster
from spatialdm.gm.interpreter import NarrationInterpreter
from spatialdm.gm.prompts import build_message_history, build_system_prompt
from spatialdm.gm.schemas import (
    ActingCharacter,
    NarrationResult,
    PromptContext,
    StateSnapshot,
    TurnResult,
)
from spatialdm.gm.summarizer import SessionSummarizer

__all__ = [
    "ContextBuilder",
    "build_state_snapshot",
    "DungeonMaster",
    "NarrationInterpreter",
    "build_message_history",
    "build_system_prompt",
    "ActingCharacter",
    "NarrationResult",
    "PromptContext",
    "StateSnapshot",
    "TurnResult",
    "SessionSummarizer",
]
