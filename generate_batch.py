"""Apply every color-grading preset to one image via the backend API."""
import asyncio
import sys
from pathlib import Path

from studio.dispatcher import GenerationDispatcher, save_image
from studio.presets import PRESETS
from studio.selection import SelectedImage
from studio.workflows import ColorGradePage


async def main(image_path: str, output_dir: str = "graded") -> None:
    source = SelectedImage.from_path(image_path)
    dispatcher = GenerationDispatcher()

    print(f"🎨 Grading {source.name} with {len(PRESETS)} presets...\n")

    for i, (preset_id, preset) in enumerate(PRESETS.items(), 1):
        print(f"[{i}/{len(PRESETS)}] Applying: {preset['name']}...")
        page = ColorGradePage(dispatcher)
        page.select_images([source])
        try:
            result = await page.apply_preset(preset_id)
            if result.ok:
                out = await save_image(result.image_url, Path(output_dir) / f"{Path(image_path).stem}_{preset_id}.png")
                print(f"  ✅ Saved: {out}")
            else:
                print(f"  ❌ Failed: {result.error}")
        except (OSError, RuntimeError, ValueError) as e:
            print(f"  ❌ Error: {e}")
        finally:
            page.close()

    print(f"\n🎉 Done! Check {output_dir}/.")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python generate_batch.py <image> [output_dir]")
        sys.exit(1)
    asyncio.run(main(*sys.argv[1:3]))
