"""Background image selection for the current weather condition."""

import logging
import random

from config import BACKGROUND_GRADIENTS, BACKGROUND_PATH, BACKGROUNDS, IMAGE_VARIANTS
from models import BackgroundChoice

log = logging.getLogger(__name__)

DEFAULT_CONDITION = "clear"


class BackgroundSelector:
    """Maps (condition, day/night) to an image path plus a CSS gradient fallback.

    ``rng`` needs only ``randint(a, b)``; pass a seeded ``random.Random``
    (or a stub) for repeatable variants.
    """

    def __init__(self, rng=None, variants=IMAGE_VARIANTS, base_path=BACKGROUND_PATH):
        self.rng = rng or random.Random()
        self.variants = max(1, variants)
        self.base_path = base_path

    def _lookup(self, condition):
        """Return the mapping key for a condition: exact, then partial, then default."""
        name = (condition or "").lower()
        if name in BACKGROUNDS:
            return name
        if name:
            for key in BACKGROUNDS:
                if key in name or name in key:
                    return key
        return DEFAULT_CONDITION

    def _filename(self, base, variant):
        if variant is None:
            return f"{base}.jpg"
        return f"{base}-{variant}.jpg"

    def choose(self, condition, is_day=True):
        key = self._lookup(condition)
        if key != (condition or "").lower():
            log.debug("No background for %r, using %r", condition, key)
        day_image, night_image, gradient = BACKGROUNDS[key]
        base = day_image if is_day else night_image
        variant = self.rng.randint(1, self.variants) if self.variants > 1 else None
        return BackgroundChoice(
            type="image",
            source=f"{self.base_path}/{self._filename(base, variant)}",
            fallback=BACKGROUND_GRADIENTS.get(gradient, BACKGROUND_GRADIENTS[DEFAULT_CONDITION]),
            variant=variant,
            base_condition=base,
        )

    def _variant_numbers(self):
        if self.variants > 1:
            return list(range(1, self.variants + 1))
        return [None]

    def variants_for(self, condition, is_day=True):
        """Every image for an exactly known condition; [] otherwise."""
        key = (condition or "").lower()
        if key not in BACKGROUNDS:
            return []
        day_image, night_image, _ = BACKGROUNDS[key]
        base = day_image if is_day else night_image
        return [
            {
                "variant": n,
                "filename": self._filename(base, n),
                "path": f"{self.base_path}/{self._filename(base, n)}",
            }
            for n in self._variant_numbers()
        ]

    def catalog(self):
        """All (condition, time of day, variant) image files."""
        backgrounds = []
        for condition, (day_image, night_image, _) in BACKGROUNDS.items():
            for time_of_day, base in (("day", day_image), ("night", night_image)):
                for n in self._variant_numbers():
                    filename = self._filename(base, n)
                    backgrounds.append({
                        "condition": condition,
                        "timeOfDay": time_of_day,
                        "variant": n,
                        "filename": filename,
                        "path": f"{self.base_path}/{filename}",
                    })
        return backgrounds
