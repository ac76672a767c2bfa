"""Model credit costs and purchasable packages."""

DEFAULT_ANALYSIS_MODEL = "google/gemini-2.0-flash-001"

# Credits charged per homeowner analysis, keyed by OpenRouter model id
CREDIT_COSTS: dict[str, int] = {
    "google/gemini-2.0-flash-001": 200,
    "google/gemini-2.5-flash": 500,
    "anthropic/claude-sonnet-4": 500,
}

# Chat model aliases -> OpenRouter model ids
CHAT_MODELS: dict[str, str] = {
    "gemini-2.0-flash": "google/gemini-2.0-flash-001",
    "gemini-2.5-flash": "google/gemini-2.5-flash-lite",
}
DEFAULT_CHAT_MODEL = "gemini-2.0-flash"
# Chat is free but requires a non-empty balance
CHAT_MIN_CREDITS = 1

MAX_IMAGES_PER_ANALYSIS = 3

PACKAGES: dict[str, dict] = {
    "starter": {
        "name": "Starter",
        "price": 8.99,
        "credits": 8000,
        "description": "Individuals & small teams",
        "features": [
            "8,000 credits included",
            "40 analyses",
            "Structural engineer support",
        ],
    },
    "pro": {
        "name": "Pro",
        "price": 29.99,
        "credits": 24000,
        "description": "Professionals & creators",
        "features": [
            "24,000 credits included",
            "120 analyses",
            "Structural engineer support",
        ],
    },
}


def get_credit_cost(model: str) -> int:
    try:
        return CREDIT_COSTS[model]
    except KeyError:
        raise ValueError(f"Unknown model: {model}") from None


def get_package(name: str) -> dict:
    try:
        return PACKAGES[name]
    except KeyError:
        raise ValueError(f"Unknown package: {name}") from None
