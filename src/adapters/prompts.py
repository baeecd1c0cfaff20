"""
Prompt templates sent to the model, plus the locally built chat greeting.
"""

from google.genai import types

PROFILE_PROMPT = """Identify the primary national animal or most culturally significant wildlife symbol of {country}.
Return the result as a JSON object with the following fields:
- name (common name)
- scientificName
- description (a brief physical description, max 2 sentences)
- habitat (a few words about where it lives)
- traits (array of {trait_count} strings identifying its key characteristics like 'Strength', 'Wisdom', etc.)"""

INSIGHT_PROMPT = """Reveal the "Sixth Sense" of the {animal} in the context of {country}.
Describe its spiritual meaning, folklore, or the deep, unspoken connection it represents for the nation's people.
Write it in a mystical, evocative, yet educational tone. Max 200 words."""

VISION_PROMPT = """A mystical, high-quality, artistic representation of a {animal}, representing the soul of {country}.
Cinematic lighting, ethereal atmosphere, highly detailed. Aspect ratio 1:1."""

PERSONA_PROMPT = """You are the Spirit Guide of the {animal} from {country}.
Speak with wisdom, brevity, and a slightly mystical tone.
Your goal is to educate the user about your species, your habitat, and your connection to the nation's culture."""

GREETING = (
    "I am the spirit of the {animal}. Ask me about my life in {country}, "
    "or my hidden connection to the land."
)

PROFILE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "name": types.Schema(type=types.Type.STRING),
        "scientificName": types.Schema(type=types.Type.STRING),
        "description": types.Schema(type=types.Type.STRING),
        "habitat": types.Schema(type=types.Type.STRING),
        "traits": types.Schema(
            type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)
        ),
    },
    required=["name", "description"],
)


def profile_prompt(country: str, trait_count: int = 3) -> str:
    return PROFILE_PROMPT.format(country=country, trait_count=trait_count)


def insight_prompt(country: str, animal_name: str) -> str:
    return INSIGHT_PROMPT.format(country=country, animal=animal_name)


def vision_prompt(country: str, animal_name: str) -> str:
    return VISION_PROMPT.format(country=country, animal=animal_name)


def persona_prompt(country: str, animal_name: str) -> str:
    return PERSONA_PROMPT.format(country=country, animal=animal_name)


def greeting(country: str, animal_name: str) -> str:
    return GREETING.format(country=country, animal=animal_name)
