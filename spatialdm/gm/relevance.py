"""Relevance selection for knowledge, tone and mechanics.

Pure functions over already-loaded rows so each step can be tested
without a database.
"""

from typing import Sequence

from spatialdm.database.models.enums import KnowledgeCategory, MechanicsCategory
from spatialdm.database.models.knowledge import KnowledgeEntry, MechanicsRule, ToneProfile
from spatialdm.gm.schemas import KnowledgeItem, MechanicsItem, StateSnapshot

# Knowledge scoring weights
TITLE_MATCH_SCORE = 10
KEYWORD_MATCH_SCORE = 5
CURRENT_LOCATION_SCORE = 15
ACTIVE_NPC_SCORE = 12

# Tone condition keys understood by select_tone; other keys are ignored
TONE_LOCATION_KEY = "location"
TONE_NPC_PRESENT_KEY = "npc_present"

MECHANICS_KEYWORDS: dict[MechanicsCategory, tuple[str, ...]] = {
    MechanicsCategory.COMBAT: (
        "attack", "damage", "hit", "fight", "combat", "weapon", "armor", "ac",
    ),
    MechanicsCategory.SKILL_CHECK: (
        "roll", "check", "save", "saving throw", "ability", "skill",
    ),
    MechanicsCategory.MAGIC: ("spell", "cast", "magic", "enchant", "ritual", "arcane"),
    MechanicsCategory.SOCIAL: ("persuade", "intimidate", "deceive", "insight", "performance"),
    MechanicsCategory.EXPLORATION: ("search", "investigate", "perception", "navigate", "track"),
    MechanicsCategory.REST: ("rest", "sleep", "recover", "heal", "long rest", "short rest"),
}


def score_entry(entry: KnowledgeEntry, user_input: str, snapshot: StateSnapshot | None) -> int:
    """Relevance score of one knowledge entry.

    10 for a title substring match in the input, 5 per matching keyword,
    15 for a LOCATION entry named like the current location, and 12 per
    active NPC named in an NPC entry's title. All comparisons ignore case.
    """
    text = user_input.lower()
    title = entry.title.lower()
    score = 0

    if title and title in text:
        score += TITLE_MATCH_SCORE

    for keyword in entry.keywords or []:
        if keyword and str(keyword).lower() in text:
            score += KEYWORD_MATCH_SCORE

    if snapshot is not None:
        if (
            entry.category == KnowledgeCategory.LOCATION
            and snapshot.current_location
            and title == snapshot.current_location.lower()
        ):
            score += CURRENT_LOCATION_SCORE

        if entry.category == KnowledgeCategory.NPC:
            for npc in snapshot.active_npcs:
                if npc and npc.lower() in title:
                    score += ACTIVE_NPC_SCORE

    return score


def score_knowledge(
    entries: Sequence[KnowledgeEntry],
    user_input: str,
    snapshot: StateSnapshot | None,
    limit: int = 5,
) -> list[KnowledgeItem]:
    """Top `limit` knowledge entries with a strictly positive score.

    Ties keep the input order, so the result is deterministic for a
    given (entries, input, snapshot).
    """
    scored = []
    for entry in entries:
        score = score_entry(entry, user_input, snapshot)
        if score > 0:
            scored.append(
                KnowledgeItem(
                    title=entry.title,
                    content=entry.content,
                    category=entry.category,
                    score=score,
                )
            )
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[:limit]


def tone_matches(profile: ToneProfile, snapshot: StateSnapshot | None) -> bool:
    """Whether a tone profile's conditions hold for the snapshot.

    A profile without conditions always matches. A condition is only
    checked when the snapshot carries the value it compares against, so
    a location condition cannot fail while the location is unknown.
    """
    conditions = profile.conditions or {}
    if not conditions:
        return True

    location = conditions.get(TONE_LOCATION_KEY)
    if location and snapshot is not None and snapshot.current_location:
        if snapshot.current_location.lower() != str(location).lower():
            return False

    npc = conditions.get(TONE_NPC_PRESENT_KEY)
    if npc and snapshot is not None and snapshot.active_npcs:
        if not any(name.lower() == str(npc).lower() for name in snapshot.active_npcs):
            return False

    return True


def select_tone(
    profiles: Sequence[ToneProfile], snapshot: StateSnapshot | None
) -> ToneProfile | None:
    """Pick exactly one tone profile, or None when there are none.

    Profiles are tried by descending priority; the first match wins and
    the highest-priority profile is the fallback.
    """
    if not profiles:
        return None

    ordered = sorted(profiles, key=lambda p: p.priority, reverse=True)
    for profile in ordered:
        if tone_matches(profile, snapshot):
            return profile
    return ordered[0]


def relevant_categories(user_input: str) -> set[MechanicsCategory]:
    """Mechanics categories whose keywords appear in the input."""
    text = user_input.lower()
    return {
        category
        for category, keywords in MECHANICS_KEYWORDS.items()
        if any(keyword in text for keyword in keywords)
    }


def find_relevant_mechanics(
    rules: Sequence[MechanicsRule], user_input: str, limit: int = 3
) -> list[MechanicsItem]:
    """Mechanics rules relevant to the input, capped at `limit`.

    A rule qualifies when its category's keywords hit the input or when
    one of its own keywords does. With no hit at all nothing is returned.
    """
    text = user_input.lower()
    categories = relevant_categories(user_input)

    selected = []
    for rule in rules:
        own_hit = any(keyword and str(keyword).lower() in text for keyword in rule.keywords or [])
        if rule.category in categories or own_hit:
            selected.append(
                MechanicsItem(title=rule.title, content=rule.content, category=rule.category)
            )
            if len(selected) >= limit:
                break
    return selected
