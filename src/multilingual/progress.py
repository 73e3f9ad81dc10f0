"""Console progress reporting."""

from __future__ import annotations

from typing import Optional

from tqdm import tqdm


class ProgressReporter:
    """
    tqdm-backed ``(message, completed, total)`` callback for ``I18nGenerator``.

    ``completed`` may be fractional while a language is being translated.
    """

    def __init__(self, disable: bool = False, unit: str = "lang"):
        self.disable = disable
        self.unit = unit
        self._bar: Optional[tqdm] = None

    def __call__(self, message: str, completed: float, total: int) -> None:
        if self._bar is None:
            self._bar = tqdm(
                total=total,
                desc=message,
                unit=self.unit,
                disable=self.disable,
                bar_format="{desc}: {percentage:3.0f}%|{bar}| {n:.1f}/{total}",
            )
        self._bar.set_description(message, refresh=False)
        self._bar.n = min(float(completed), float(total))
        self._bar.refresh()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def __enter__(self) -> "ProgressReporter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
