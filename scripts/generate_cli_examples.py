from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["160", "120", "250"]


@dataclass
class Example:
    name: str
    args: list[str]
    output: Path

    def full_args(self) -> list[str]:
        return [sys.executable, "render.py", *self.args, "--output", str(self.output)]


def _example(name: str, filename: str, *args: str) -> Example:
    return Example(name=name, args=[*BASE_ARGS, *args], output=EXAMPLES_ROOT / name / filename)


EXAMPLES: list[Example] = [
    _example("defaults", "full-set.png"),
    Example("max-iterations", ["160", "120", "2000"], EXAMPLES_ROOT / "max-iterations" / "high-iterations.png"),
    _example("supersample", "antialiased.png", "--supersample", "3"),
    _example("target", "seahorse-valley.png", "--target", "-0.745", "0.1", "--zoom", "40"),
    _example("zoom", "period-three.png", "--target", "-1.7549", "0", "--zoom", "60"),
    _example("julia", "dendrite.png", "--julia", "0", "1"),
    _example("julia-pixel", "from-pixel.png", "--julia-pixel", "40", "45"),
    _example("anchors", "two-tone.png", "--anchors", "#0a3ba0", "#f4d35e"),
    _example("colormap", "twilight.png", "--colormap", "twilight_shifted", "--colormap-anchors", "24"),
    _example("palette-scale", "wide-bands.png", "--palette-scale", "0.03"),
    _example("bailout", "small-radius.png", "--bailout", "2"),
    _example("no-smooth", "banded.png", "--no-smooth"),
    _example("workers", "single-thread.png", "--workers", "1"),
    _example("verbose", "diagnostic.png", "--verbose"),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _verify(example: Example) -> None:
    if not example.output.is_file():
        raise RuntimeError(f"Expected file {example.output} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _ensure_clean([example.output.parent])
        example.output.parent.mkdir(parents=True, exist_ok=True)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
