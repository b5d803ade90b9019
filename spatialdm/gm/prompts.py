"""Prompt construction for the narrator model.

The system prompt is assembled from independent sections and passed
through ContextBudget so optional sections are dropped first when space
runs out. The reply contract and movement guide are always kept.
"""

import json

from spatialdm.database.models.enums import ChatRole, CoverLevel
from spatialdm.gm.context_budget import BudgetResult, ContextBudget
from spatialdm.gm.schemas import PromptContext, SpatialPromptContext, StateSnapshot
from spatialdm.llm.message_types import Message
from spatialdm.spatial.units import format_distance, format_position

PREAMBLE_TEMPLATE = (
    'You are an expert Dungeon Master running a tabletop RPG session for "{campaign_name}".'
)

REPLY_FORMAT = """CRITICAL: You MUST ALWAYS respond in valid JSON format. Every response must be a JSON object.
Required JSON structure:
{
  "narrative": "Your immersive story response here (2-3 paragraphs)",
  "movement": {
    "detected": false
  }
}
Set "detected" to true ONLY if the player explicitly indicates movement, and then include:
{
  "detected": true,
  "characterName": "Player",
  "targetName": "orc",
  "targetPosition": {"x": 15.5, "y": 14.0, "z": 0.0},
  "actionType": "MELEE",
  "reason": "To attack the orc"
}"""

SPATIAL_REMINDER = (
    "IMPORTANT: When describing actions, take into account the positions and distances "
    "between characters. Use the stored location data and mechanics rules to determine "
    "what is physically possible. If a character wants to interact with something far "
    "away, suggest they move closer first."
)

DM_INSTRUCTIONS = """DM Instructions:
- Be descriptive and immersive in the "narrative" field
- React to player actions naturally
- Request dice rolls when appropriate
- Stay consistent with established facts
- Keep narrative concise (2-3 paragraphs)"""

MOVEMENT_GUIDE = """Movement Detection Guide:
Keywords that indicate movement: charge, rush, attack, approach, move to, walk to, flee, retreat, investigate, examine, talk to
When you see these keywords:
1. Set movement.detected = true
2. Identify the target from the spatial context above
3. Calculate targetPosition based on the action:
   - MELEE (attack/charge): 1.5m from target
   - RANGED: 10-18m from target
   - SPELL: 5-9m from target
   - CONVERSATION (talk to): 2-6m from target
   - PERCEPTION (investigate): 1m from feature
4. Set the actionType and reason fields
Example: "I charge at the orc!" -> movement.detected=true, actionType="MELEE", position 1.5m from the orc
REMEMBER: Always return valid JSON with both "narrative" and "movement" fields!"""

SUMMARY_PREFIX = "[Session Summary]: "


def render_situation(state: StateSnapshot | None) -> str:
    if state is None or state.is_empty:
        return ""

    lines = ["Current Situation:"]
    if state.current_location:
        lines.append(f"- Location: {state.current_location}")
    if state.active_npcs:
        lines.append(f"- NPCs Present: {', '.join(state.active_npcs)}")
    if state.ongoing_quests:
        lines.append(f"- Active Quests: {'; '.join(state.ongoing_quests)}")
    if state.party_conditions:
        lines.append(f"- Party Status: {json.dumps(state.party_conditions, sort_keys=True)}")
    if state.recent_events:
        lines.append(f"- Recent Events: {'; '.join(state.recent_events)}")
    return "\n".join(lines)


def _cover_phrase(cover: CoverLevel) -> str:
    if cover == CoverLevel.NONE:
        return ""
    return f" with {cover.value.replace('_', '-')} cover"


def render_spatial(spatial: SpatialPromptContext | None) -> str:
    """Spatial section: location, position, visible characters, features, actions."""
    if spatial is None:
        return ""

    unit = spatial.unit_type
    lines = [
        "Spatial Context:",
        f"- Current Location: {spatial.location_name}",
        f"- {spatial.character_name}'s Position: {format_position(spatial.position, unit)}",
    ]

    if spatial.nearby_characters:
        lines.append("- Nearby Characters:")
        for other in spatial.nearby_characters:
            visibility = "visible" if other.can_see else "hidden"
            lines.append(
                f"  • {other.name} at {format_position(other.position, unit)} - "
                f"{format_distance(other.distance, unit)} away, "
                f"{visibility}{_cover_phrase(other.cover_level)}"
            )

    if spatial.nearby_features:
        lines.append("- Nearby Features:")
        for feature in spatial.nearby_features:
            lines.append(
                f"  • {feature.name} ({feature.feature_type.value}) - "
                f"{format_distance(feature.distance, unit)} away"
            )

    if spatial.available_actions:
        lines.append("- Available Actions:")
        for action in spatial.available_actions:
            suffix = " (requires movement)" if action.requires_movement else ""
            lines.append(f"  • {action.action} -> {action.target_name}{suffix}")

    lines.append("")
    lines.append(SPATIAL_REMINDER)
    return "\n".join(lines)


def render_knowledge(context: PromptContext) -> str:
    if not context.knowledge:
        return ""
    lines = ["Relevant Information:"]
    lines.extend(f"- {item.title}: {item.content}" for item in context.knowledge)
    return "\n".join(lines)


def render_tone(context: PromptContext) -> str:
    if not context.tone_guidelines:
        return ""
    return f"Tone & Style:\n{context.tone_guidelines}"


def render_mechanics(context: PromptContext) -> str:
    if not context.mechanics:
        return ""
    lines = ["Relevant Rules:"]
    lines.extend(f"- {rule.render()}" for rule in context.mechanics)
    return "\n".join(lines)


def render_guidelines(context: PromptContext) -> str:
    if not context.ai_guidelines:
        return ""
    return f"Campaign Guidelines:\n{context.ai_guidelines}"


def prompt_budget(context: PromptContext, max_tokens: int = 1600) -> ContextBudget:
    """Load every rendered prompt section into a ContextBudget, in prompt order."""
    budget = ContextBudget(max_tokens=max_tokens)
    budget.add_section("preamble", PREAMBLE_TEMPLATE.format(campaign_name=context.campaign_name))
    budget.add_section("reply_format", REPLY_FORMAT)
    budget.add_section("situation", render_situation(context.state))
    budget.add_section("spatial", render_spatial(context.spatial))
    budget.add_section("knowledge", render_knowledge(context))
    budget.add_section("tone", render_tone(context))
    budget.add_section("mechanics", render_mechanics(context))
    budget.add_section("guidelines", render_guidelines(context))
    budget.add_section("dm_instructions", DM_INSTRUCTIONS)
    budget.add_section("movement_guide", MOVEMENT_GUIDE)
    return budget


def build_system_prompt(context: PromptContext, max_tokens: int = 1600) -> BudgetResult:
    """Render the narrator system prompt within a token budget.

    Args:
        context: Assembled prompt context.
        max_tokens: Budget for the whole system prompt.

    Returns:
        BudgetResult whose content is the system prompt.
    """
    return prompt_budget(context, max_tokens).compile()


def build_message_history(context: PromptContext) -> list[Message]:
    """Message list sent after the system prompt.

    The rolling summary (if any) goes first as an assistant message,
    then the recent messages oldest-first, then the current player input.
    """
    messages: list[Message] = []
    if context.summary:
        messages.append(Message.assistant(f"{SUMMARY_PREFIX}{context.summary}"))

    for turn in context.recent_messages:
        if turn.role == ChatRole.USER:
            messages.append(Message.user(turn.content))
        else:
            messages.append(Message.assistant(turn.content))

    messages.append(Message.user(context.user_input))
    return messages
