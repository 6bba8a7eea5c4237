"""
Fixed option catalogs for the onboarding category steps.

Genres and books come from the backend; everything else is a fixed list.
Options carry display metadata for the UI.
"""

READING_PURPOSES = [
    {"id": "leisure", "label": "Leisure", "icon": "🎯", "description": "To have a good time"},
    {"id": "learning", "label": "Learning", "icon": "📚", "description": "To learn something new"},
    {"id": "self-development", "label": "Self-development", "icon": "💪", "description": "To become a better me"},
    {"id": "inspiration", "label": "Inspiration", "icon": "✨", "description": "To find creative inspiration"},
]

BOOK_LENGTHS = [
    {"id": "short", "label": "Short", "icon": "📖", "description": "100-200 pages"},
    {"id": "medium", "label": "Medium", "icon": "📚", "description": "200-400 pages"},
    {"id": "long", "label": "Long", "icon": "📕", "description": "400+ pages"},
    {"id": "any", "label": "Any", "icon": "✨", "description": "Length doesn't matter"},
]

READING_PACES = [
    {"id": "fast", "label": "Fast", "icon": "⚡", "description": "I read quickly"},
    {"id": "medium", "label": "Medium", "icon": "⏱️", "description": "I take my time"},
    {"id": "slow", "label": "Slow", "icon": "🐢", "description": "I read slowly and deeply"},
]

DIFFICULTIES = [
    {"id": "easy", "label": "Easy", "icon": "😊", "description": "Comfortable reads"},
    {"id": "moderate", "label": "Moderate", "icon": "🤔", "description": "Makes me think a bit"},
    {"id": "challenging", "label": "Challenging", "icon": "🧠", "description": "Makes me think hard"},
    {"id": "any", "label": "Any", "icon": "✨", "description": "Difficulty doesn't matter"},
]

MOODS = [
    {"id": "bright", "label": "Bright", "icon": "☀️", "description": "Upbeat and positive"},
    {"id": "dark", "label": "Dark", "icon": "🌙", "description": "Serious and heavy"},
    {"id": "neutral", "label": "Neutral", "icon": "⚖️", "description": "Balanced"},
    {"id": "philosophical", "label": "Philosophical", "icon": "🤔", "description": "Contemplative"},
    {"id": "emotional", "label": "Emotional", "icon": "💭", "description": "Rich in feeling"},
]

EMOTIONS = [
    {"id": "touching", "label": "Touching", "icon": "😢", "description": "Moving to tears"},
    {"id": "tension", "label": "Tension", "icon": "😰", "description": "Edge of your seat"},
    {"id": "humor", "label": "Humor", "icon": "😂", "description": "Laugh out loud"},
    {"id": "sadness", "label": "Sadness", "icon": "😔", "description": "Melancholy"},
    {"id": "inspiration", "label": "Inspiration", "icon": "💡", "description": "Inspiring"},
    {"id": "horror", "label": "Horror", "icon": "😱", "description": "Chilling"},
]

NARRATIVE_STYLES = [
    {"id": "direct", "label": "Direct", "icon": "💬", "description": "Clear and to the point"},
    {"id": "metaphorical", "label": "Metaphorical", "icon": "🎭", "description": "Rich in metaphor"},
    {"id": "philosophical", "label": "Philosophical", "icon": "🤔", "description": "Invites reflection"},
    {"id": "descriptive", "label": "Descriptive", "icon": "🎨", "description": "Vivid scenes"},
    {"id": "conversational", "label": "Conversational", "icon": "💬", "description": "Lots of dialogue"},
]

THEMES = [
    {"id": "growth", "label": "Growth", "icon": "🌱", "description": "Characters who change"},
    {"id": "love", "label": "Love", "icon": "❤️", "description": "Love and relationships"},
    {"id": "friendship", "label": "Friendship", "icon": "🤝", "description": "Friends and companions"},
    {"id": "family", "label": "Family", "icon": "👨‍👩‍👧‍👦", "description": "Family and home"},
    {"id": "society", "label": "Society", "icon": "🏙️", "description": "Social issues and critique"},
    {"id": "history", "label": "History", "icon": "📜", "description": "Historical events and figures"},
    {"id": "future", "label": "Future", "icon": "🚀", "description": "The future and SF"},
    {"id": "fantasy", "label": "Fantasy", "icon": "🧙‍♂️", "description": "Magic and wonder"},
]

MAX_PURPOSE_SELECTIONS = 3
DEFAULT_GENRE_BOOK_LIMIT = 5

# Category id -> options, for the multi-select steps
MULTI_SELECT_OPTIONS: dict[str, list[dict]] = {
    "purposes": READING_PURPOSES,
    "moods": MOODS,
    "emotions": EMOTIONS,
    "narrative_styles": NARRATIVE_STYLES,
    "themes": THEMES,
}

# Scalar field -> options, for the single-choice questions
SCALAR_OPTIONS: dict[str, list[dict]] = {
    "preferred_length": BOOK_LENGTHS,
    "reading_pace": READING_PACES,
    "preferred_difficulty": DIFFICULTIES,
}


def option_ids(options: list[dict]) -> set[str]:
    """Ids of a catalog."""
    return {o["id"] for o in options}


def get_options() -> dict:
    """All fixed catalogs for UI display."""
    return {
        **MULTI_SELECT_OPTIONS,
        **SCALAR_OPTIONS,
        "max_purposes": MAX_PURPOSE_SELECTIONS,
    }
