from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

# Allow running this script directly (python tools/fetch_backgrounds.py ...) by
# adding the project root to sys.path so `import logosdeck...` works.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from logosdeck.config import settings  # noqa: E402
from logosdeck.errors import ImageUnavailable  # noqa: E402
from logosdeck.images.illustration import IllustrationProvider  # noqa: E402

# Five prompts per theme; file N is used as stock variant N on title pages.
BACKGROUND_PROMPTS: dict[str, list[str]] = {
    "premium": ["dark blue geometric", "indigo refined texture", "slate modern abstract",
                "corporate dark tech", "subtle navy mesh"],
    "minimal": ["white uneven concrete", "light gray paper texture", "soft white shadows",
                "minimalist architecture detail", "clean white marble"],
    "nature": ["blurred forest foliage", "soft morning sunlight leaves", "green gradient organic",
               "calm lake reflection", "wood grain texture"],
    "pop": ["vibrant abstract shapes", "yellow pink gradient", "colorful memphis pattern",
            "bright orange curves", "playful confetti abstract"],
    "cyber": ["neon blue grid", "cyberpunk city bokeh", "digital circuit board blue",
              "matrix rain abstract", "futuristic hexagon pattern"],
    "luxury": ["black and gold marble", "dark silk texture", "gold dust on black",
               "luxury leather texture", "premium geometric gold lines"],
    "japanese": ["washi paper texture", "seigaiha pattern subtle", "bamboo texture",
                 "cherry blossom soft blur", "japanese indigo fabric"],
    "sky": ["blue sky white clouds", "beautiful sunrise gradient", "soft blue sky texture",
            "starry night sky", "golden hour sky"],
}

BACKGROUND_SUFFIX = ", high quality, 8k, wallpaper, no text"


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Download stock title-page backgrounds into ASSETS_DIR/stock.")
    parser.add_argument("--theme", action="append", choices=sorted(BACKGROUND_PROMPTS),
                        help="Only fetch these themes (repeatable; default: all)")
    parser.add_argument("--assets-dir", default=settings.assets_dir,
                        help="Assets directory (default: assets or ASSETS_DIR env var)")
    parser.add_argument("--delay", type=float, default=0.2,
                        help="Pause between downloads in seconds")
    args = parser.parse_args()

    provider = IllustrationProvider(
        base_url=settings.illustration_base_url,
        style_suffix=BACKGROUND_SUFFIX,
        timeout=settings.request_timeout,
    )
    out_dir = Path(args.assets_dir) / "stock"
    out_dir.mkdir(parents=True, exist_ok=True)

    count = 0
    for theme_id in args.theme or sorted(BACKGROUND_PROMPTS):
        for i, prompt in enumerate(BACKGROUND_PROMPTS[theme_id], start=1):
            target = out_dir / f"{theme_id}_{i}.jpg"
            try:
                data = provider.download(provider.url_for(prompt, width=1920, height=1080))
            except ImageUnavailable as e:
                print(f"Error downloading {target.name}: {e}", file=sys.stderr)
                continue
            target.write_bytes(data)
            count += 1
            print(str(target.resolve()))
            time.sleep(args.delay)

    print(f"Downloaded {count} images to {out_dir.resolve()}")


if __name__ == "__main__":
    main()
