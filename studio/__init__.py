"""
Image Remix Studio
==================

Transform 1-4 uploaded images with a text prompt or a color-grading preset
through the AI gateway, and keep a per-user history of the results.

Available modules:
    - gateway_client: AI gateway configuration and model catalog
    - generation:     The proxy core (payload assembly, upstream call, unwrap)
    - presets:        The eight color-grading presets
    - selection:      Upload selection state and preview handles
    - encoding:       Selected image -> data URL
    - dispatcher:     Client for the proxy endpoint, plus result download
    - session:        Sign in / sign out against the hosted backend
    - history:        Generation history table
    - workflows:      Generate, color-grade and history page state

Quick Start (server side):
    from studio.generation import generate
    url = generate(["data:image/png;base64,..."], "Turn this into a watercolor")

Quick Start (client side):
    from studio.dispatcher import GenerationDispatcher
    from studio.selection import SelectedImage
    from studio.workflows import ColorGradePage

    page = ColorGradePage(GenerationDispatcher())
    page.select_images([SelectedImage.from_path("photo.jpg")])
    result = await page.apply_preset("cinematic")
    print(page.compare())
    page.close()

Server:
    uvicorn backend.main:app --port 8000
"""

from studio.gateway_client import get_config
