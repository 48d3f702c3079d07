"""
Color Grading Presets
=====================

One-click grading presets. Each preset id maps to a canned instruction that
is sent verbatim as the generation prompt.

Usage:
    from studio.presets import preset_prompt
    prompt = preset_prompt("warm")
"""

PRESETS = {
    "cinematic": {
        "name": "Cinematic",
        "description": "Hollywood movie look with rich colors",
        "prompt": "Apply professional cinematic color grading with deep shadows, rich highlights, warm skin tones, and film-like quality. Create a Hollywood blockbuster aesthetic with enhanced contrast and saturation.",
    },
    "warm": {
        "name": "Warm Sunset",
        "description": "Golden hour warmth",
        "prompt": "Apply warm sunset color grading with golden hour lighting, orange and yellow tones, soft warm glow, enhanced warmth in highlights, and dreamy sunset atmosphere.",
    },
    "cool": {
        "name": "Cool Mood",
        "description": "Cool blue tones",
        "prompt": "Apply cool moody color grading with blue and teal tones, dramatic shadows, cinematic look, reduced warmth, and atmospheric cool palette.",
    },
    "vintage": {
        "name": "Vintage Film",
        "description": "Classic retro film look",
        "prompt": "Apply vintage film color grading with faded colors, warm nostalgic tones, slight grain texture, retro aesthetic, reduced saturation, and classic film photography look.",
    },
    "vibrant": {
        "name": "Vibrant Pop",
        "description": "Punchy vivid colors",
        "prompt": "Apply vibrant pop color grading with boosted saturation, punchy colors, enhanced vibrancy, bright and energetic palette, increased clarity and sharpness.",
    },
    "natural": {
        "name": "Natural HDR",
        "description": "Enhanced natural look",
        "prompt": "Apply natural HDR color grading with balanced exposure, enhanced dynamic range, natural color reproduction, perfect white balance, and professional landscape photography look.",
    },
    "4k-hdr": {
        "name": "4K HDR Ultra",
        "description": "Maximum quality enhancement",
        "prompt": "Enhance to 4K HDR quality with ultra-high definition details, maximum sharpness, professional color depth, expanded dynamic range, perfect clarity, enhanced texture details, and cinematic 4K resolution quality.",
    },
    "ultra-sharp": {
        "name": "Ultra Sharp",
        "description": "Crystal clear enhancement",
        "prompt": "Apply ultra-sharp enhancement with maximum detail clarity, professional sharpening, enhanced edge definition, crystal clear focus, texture enhancement, and high-definition quality improvement.",
    },
}


def get_preset(preset_id: str) -> dict:
    """Return the preset entry (with its id) or raise KeyError."""
    try:
        return {"id": preset_id, **PRESETS[preset_id]}
    except KeyError as exc:
        raise KeyError(f"Unknown preset '{preset_id}'. Must be one of: {list(PRESETS)}") from exc


def preset_prompt(preset_id: str) -> str:
    return get_preset(preset_id)["prompt"]


def list_presets() -> list[dict]:
    return [{"id": preset_id, **preset} for preset_id, preset in PRESETS.items()]
