"""
Helpers for bracket-annotated video scripts.

Spoken dialogue sits outside brackets; camera and visual directions sit
inside them, e.g. ``[Show map of Ukraine]``.
"""

import re
from dataclasses import dataclass
from typing import List

_VISUAL_PATTERN = re.compile(r"(\[.*?\])")


@dataclass(frozen=True)
class ScriptSegment:
    kind: str  # "visual" or "dialogue"
    text: str


def parse_script(text: str) -> List[List[ScriptSegment]]:
    """Split each script line into ordered visual and dialogue segments."""
    lines: List[List[ScriptSegment]] = []
    for line in text.split("\n"):
        segments = []
        for part in _VISUAL_PATTERN.split(line):
            if part.startswith("[") and part.endswith("]"):
                cue = part[1:-1].strip()
                if cue:
                    segments.append(ScriptSegment("visual", cue))
            elif part.strip():
                segments.append(ScriptSegment("dialogue", part.strip()))
        lines.append(segments)
    return lines


def visual_cues(text: str) -> List[str]:
    return [seg.text for line in parse_script(text) for seg in line if seg.kind == "visual"]


def render_script(text: str, visual_marker: str = "🎬") -> str:
    """Console rendering: visual cues on their own marked lines, dialogue indented."""
    out: List[str] = []
    for segments in parse_script(text):
        if not segments:
            out.append("")
            continue
        for seg in segments:
            if seg.kind == "visual":
                out.append(f"{visual_marker} [{seg.text}]")
            else:
                out.append(f"    {seg.text}")
    return "\n".join(out)
