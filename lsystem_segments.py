#!/usr/bin/env python3
"""lsystem_segments.py

Expand L-system grammars and interpret them as turtle graphics line segments.

Key features:
- Simultaneous (non-cascading) string rewriting.
- Fixed turtle alphabet: F + - [ ] @ ! (everything else is decorative).
- Branching via a save/restore state stack.
- Step scaling with in-stream numeric arguments (e.g. "@.7").
- Exact, direction-sensitive deduplication of segments.
- JSON-based input configuration and SVG output.

Run:
  python lsystem_segments.py render config.json output.svg
  python lsystem_segments.py segments config.json output.csv
  python lsystem_segments.py --help
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import math
import os
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TextIO, cast

TAU = 2 * math.pi

DRAW = "F"
TURN_POSITIVE = "+"
TURN_NEGATIVE = "-"
PUSH = "["
POP = "]"
SCALE = "@"
FLIP = "!"

logger = logging.getLogger(__name__)


# -------------------------
# Errors / Validation
# -------------------------


class LSystemError(ValueError):
    pass


class ConfigError(LSystemError):
    pass


class InvalidArgumentError(LSystemError):
    pass


class MissingArgumentError(LSystemError):
    pass


class StackUnderflowError(LSystemError):
    pass


class EmptyGeometryError(LSystemError):
    pass


def _require(cond: bool, msg: str, error: type[LSystemError] = ConfigError) -> None:
    if not cond:
        raise error(msg)


def _as_float(x: Any, path: str) -> float:
    _require(
        isinstance(x, (int, float)) and not isinstance(x, bool),
        f"{path} must be a number",
    )
    return float(x)


def _as_int(x: Any, path: str) -> int:
    _require(
        isinstance(x, int) and not isinstance(x, bool), f"{path} must be an integer"
    )
    return int(x)


def _as_str(x: Any, path: str) -> str:
    _require(isinstance(x, str), f"{path} must be a string")
    return cast(str, x)


def _as_bool(x: Any, path: str) -> bool:
    _require(isinstance(x, bool), f"{path} must be a boolean")
    return cast(bool, x)


def _as_dict(x: Any, path: str) -> dict[str, Any]:
    _require(isinstance(x, dict), f"{path} must be an object")
    return cast(dict[str, Any], x)


def _as_symbols(x: Any, path: str) -> tuple[str, ...]:
    """Accept either a string of symbols or a list of single characters."""
    if isinstance(x, str):
        return tuple(x)
    _require(isinstance(x, list), f"{path} must be a string or a list of strings")
    out: list[str] = []
    for i, sym in enumerate(x):
        _require(
            isinstance(sym, str) and len(sym) == 1,
            f"{path}[{i}] must be a single-character string",
        )
        out.append(sym)
    return tuple(out)


def radians(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * math.pi / 180


# -------------------------
# Data model
# -------------------------


@dataclass(frozen=True)
class Grammar:
    axiom: str
    rules: Mapping[str, str]
    iterations: int = 1

    def __post_init__(self) -> None:
        _require(
            isinstance(self.axiom, str) and len(self.axiom) > 0,
            "axiom must be a non-empty string",
            InvalidArgumentError,
        )
        _require(
            self.iterations >= 1,
            f"iterations must be >= 1, got {self.iterations}",
            InvalidArgumentError,
        )
        for k, v in self.rules.items():
            _require(
                isinstance(k, str) and len(k) == 1,
                f"rule keys must be single-character strings, got {k!r}",
                InvalidArgumentError,
            )
            _require(
                isinstance(v, str),
                f"replacement for {k!r} must be a string",
                InvalidArgumentError,
            )
        # Read-only copy; the caller's dict stays independent.
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))

    def expand(self) -> str:
        return expand(self.axiom, self.rules, self.iterations)


@dataclass(frozen=True)
class LineSegment:
    x0: float
    y0: float
    x1: float
    y1: float
    # Only populated when extra info is requested.
    length: float | None = None
    heading: float | None = None
    depth: int | None = None

    @property
    def has_extra_info(self) -> bool:
        return self.depth is not None

    def as_dict(self) -> dict[str, float | int]:
        out: dict[str, float | int] = {
            "x0": self.x0,
            "y0": self.y0,
            "x1": self.x1,
            "y1": self.y1,
        }
        if self.has_extra_info:
            out["length"] = cast(float, self.length)
            out["heading"] = cast(float, self.heading)
            out["depth"] = cast(int, self.depth)
        return out


@dataclass
class TurtleState:
    x: float
    y: float
    heading: float
    step: float
    angle: float
    depth: int = 0


@dataclass(frozen=True)
class SavedFrame:
    x: float
    y: float
    angle: float
    heading: float
    step: float


@dataclass(frozen=True)
class SvgStyle:
    stroke: str = "#000"
    stroke_width: float = 1.0
    stroke_linecap: str = "round"
    # Colours spread evenly over the segments in traversal order.
    palette: tuple[str, ...] = ()

    def stroke_for(self, index: int, count: int) -> str:
        if not self.palette:
            return self.stroke
        return self.palette[index * len(self.palette) // max(count, 1)]


@dataclass(frozen=True)
class RenderConfig:
    name: str
    grammar: Grammar

    angle_deg: float
    heading_deg: float
    step: float
    draw_aliases: tuple[str, ...]

    extra_info: bool
    remove_duplicates: bool

    # svg
    margin: float
    precision: int
    flip_y: bool
    width: float | None
    height: float | None
    style: SvgStyle = field(default_factory=SvgStyle)
    background: str | None = None

    def segments(self) -> list[LineSegment]:
        return cast(list[LineSegment], self._run(return_string=False))

    def instructions(self) -> str:
        return cast(str, self._run(return_string=True))

    def _run(self, *, return_string: bool) -> str | list[LineSegment]:
        return l_system(
            self.grammar.axiom,
            self.grammar.rules,
            self.grammar.iterations,
            radians(self.angle_deg),
            radians(self.heading_deg),
            draw_aliases=self.draw_aliases,
            return_string=return_string,
            extra_info=self.extra_info,
            remove_duplicates=self.remove_duplicates,
            step=self.step,
        )


# -------------------------
# Expansion
# -------------------------


def expand(axiom: str, rules: Mapping[str, str], iterations: int) -> str:
    """Rewrite ``axiom`` ``iterations`` times.

    Every symbol of the previous generation is replaced at once, so
    replacement text is never rewritten again within the same generation.
    Symbols without a rule rewrite to themselves.
    """
    _require(
        iterations >= 1,
        f"iterations must be >= 1, got {iterations}",
        InvalidArgumentError,
    )
    current = axiom
    for _ in range(iterations):
        current = "".join(rules.get(ch, ch) for ch in current)
    logger.debug(
        "expanded %d symbols to %d in %d iterations",
        len(axiom),
        len(current),
        iterations,
    )
    return current


def translate_aliases(symbols: str, aliases: Iterable[str]) -> str:
    """Replace every alias symbol by the draw symbol."""
    table = {ord(a): DRAW for a in aliases}
    if not table:
        return symbols
    return symbols.translate(table)


# -------------------------
# Turtle interpreter
# -------------------------


def scan_number(symbols: str, start: int) -> tuple[float, int]:
    """Parse the numeric literal beginning at ``start``.

    Matches the longest run of digits containing at most one decimal point.
    Returns ``(value, consumed)``; ``consumed`` is 0 when there is no number.
    """
    end = start
    seen_point = False
    seen_digit = False
    while end < len(symbols):
        ch = symbols[end]
        if ch.isdigit() and ch.isascii():
            seen_digit = True
        elif ch == "." and not seen_point:
            seen_point = True
        else:
            break
        end += 1
    if not seen_digit:
        return 0.0, 0
    return float(symbols[start:end]), end - start


def _turn(heading: float, delta: float) -> float:
    h = (heading + delta) % TAU
    # Float modulo of a tiny negative value can round up to TAU itself.
    if h >= TAU:
        h = 0.0
    return h


def interpret(
    symbols: str,
    angle: float,
    *,
    initial_heading: float = math.pi / 2,
    step: float = 1.0,
    extra_info: bool = False,
) -> list[LineSegment]:
    """Interpret a symbol stream as turtle instructions.

    Supported instructions:
      - F  draw a line of the current step length along the heading
      - +  turn by +angle
      - -  turn by -angle
      - [  save position, angle, heading and step
      - ]  restore the last saved state
      - @  multiply the step length by the number that follows (e.g. "@.7")
      - !  flip the sign of angle

    Any other symbol is ignored. Angles are in radians and the turtle starts
    at the origin. Segments are returned in traversal order.
    """
    _require(step > 0, f"step must be > 0, got {step}", InvalidArgumentError)
    _require(
        DRAW in symbols,
        f"Instructions do not contain any '{DRAW}'.",
        EmptyGeometryError,
    )

    t = TurtleState(x=0.0, y=0.0, heading=initial_heading, step=step, angle=angle)
    stack: list[SavedFrame] = []
    segments: list[LineSegment] = []

    i = 0
    n = len(symbols)
    while i < n:
        sym = symbols[i]
        i += 1

        if sym == DRAW:
            nx = t.x + math.cos(t.heading) * t.step
            ny = t.y + math.sin(t.heading) * t.step
            if extra_info:
                seg = LineSegment(t.x, t.y, nx, ny, t.step, t.heading, t.depth)
            else:
                seg = LineSegment(t.x, t.y, nx, ny)
            segments.append(seg)
            t.x, t.y = nx, ny
        elif sym == TURN_POSITIVE:
            t.heading = _turn(t.heading, t.angle)
        elif sym == TURN_NEGATIVE:
            t.heading = _turn(t.heading, -t.angle)
        elif sym == PUSH:
            stack.append(SavedFrame(t.x, t.y, t.angle, t.heading, t.step))
            t.depth += 1
        elif sym == POP:
            _require(
                bool(stack),
                f"'{POP}' at position {i - 1} has no matching '{PUSH}'",
                StackUnderflowError,
            )
            frame = stack.pop()
            t.x, t.y = frame.x, frame.y
            t.angle = frame.angle
            t.heading = frame.heading
            t.step = frame.step
            t.depth -= 1
        elif sym == SCALE:
            value, consumed = scan_number(symbols, i)
            _require(
                consumed > 0,
                f"No numeric argument after '{SCALE}' at position {i - 1}.",
                MissingArgumentError,
            )
            t.step *= value
            i += consumed
        elif sym == FLIP:
            t.angle = -t.angle

    logger.debug("interpreted %d symbols into %d segments", n, len(segments))
    return segments


def remove_duplicates(segments: Iterable[LineSegment]) -> list[LineSegment]:
    """Drop later copies of identical segments, keeping first-seen order.

    Direction matters: a line from A to B is not a duplicate of one from B to A.
    """
    seen: set[LineSegment] = set()
    out: list[LineSegment] = []
    for seg in segments:
        if seg in seen:
            continue
        seen.add(seg)
        out.append(seg)
    return out


def l_system(
    axiom: str,
    rules: Mapping[str, str],
    n: int = 1,
    angle: float | None = None,
    initial_heading: float = math.pi / 2,
    *,
    draw_aliases: Iterable[str] = (),
    return_string: bool = False,
    extra_info: bool = False,
    remove_duplicates: bool = True,
    step: float = 1.0,
) -> str | list[LineSegment]:
    """Generate an L-system.

    Expands ``axiom`` with ``rules`` ``n`` times and replaces every symbol in
    ``draw_aliases`` with "F". With ``return_string`` the resulting string is
    returned and the drawing options are ignored. Otherwise the string is
    interpreted (see ``interpret``) and the list of line segments returned,
    with duplicates removed unless ``remove_duplicates`` is False.

    ``angle`` (the turn increment) and ``initial_heading`` are in radians;
    use ``radians()`` to convert from degrees.
    """
    grammar = Grammar(axiom=axiom, rules=rules, iterations=n)
    symbols = translate_aliases(grammar.expand(), draw_aliases)
    if return_string:
        return symbols

    _require(angle is not None, "angle is required", InvalidArgumentError)
    segments = interpret(
        symbols,
        cast(float, angle),
        initial_heading=initial_heading,
        step=step,
        extra_info=extra_info,
    )
    if remove_duplicates:
        before = len(segments)
        segments = _dedupe(segments)
        logger.debug("removed %d duplicate segments", before - len(segments))
    return segments


# The keyword argument of l_system() shadows the filter inside its body.
_dedupe = remove_duplicates


# -------------------------
# SVG writing
# -------------------------


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def compute_bounds(
    segments: list[LineSegment],
) -> tuple[float, float, float, float]:
    _require(len(segments) > 0, "No drawable geometry produced.", EmptyGeometryError)
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for seg in segments:
        for x, y in ((seg.x0, seg.y0), (seg.x1, seg.y1)):
            if x < min_x:
                min_x = x
            if x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            if y > max_y:
                max_y = y
    return (min_x, min_y, max_x, max_y)


def _fmt(x: float, precision: int) -> str:
    s = f"{x:.{precision}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    # Values that round to zero would otherwise print as "-0".
    if s in ("-0", "-", ""):
        s = "0"
    return s


def write_svg(
    segments: list[LineSegment],
    *,
    out_path: str,
    margin: float,
    precision: int,
    flip_y: bool,
    width: float | None,
    height: float | None,
    style: SvgStyle,
    background: str | None,
    title: str | None = None,
) -> None:
    minx, miny, maxx, maxy = compute_bounds(segments)

    minx -= margin
    miny -= margin
    maxx += margin
    maxy += margin
    w = maxx - minx
    h = maxy - miny
    _require(
        w > 0 and h > 0,
        "Degenerate bounds after margin (width or height is zero). "
        "Set svg.margin > 0 to render collinear geometry.",
    )

    svg_w_attr = f' width="{_fmt(float(width), precision)}"' if width else ""
    svg_h_attr = f' height="{_fmt(float(height), precision)}"' if height else ""

    view_box = (
        f"{_fmt(minx, precision)} {_fmt(miny, precision)} {_fmt(w, precision)} "
        f"{_fmt(h, precision)}"
    )

    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        "<svg xmlns=\"http://www.w3.org/2000/svg\" version=\"1.1\" "
        f"viewBox=\"{view_box}\"{svg_w_attr}{svg_h_attr}>"
    )

    if title:
        safe_title = (
            title.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        )
        lines.append(f"  <title>{safe_title}</title>")

    if background and background.lower() != "none":
        lines.append(
            f'  <rect x="{_fmt(minx, precision)}" y="{_fmt(miny, precision)}" '
            f'width="{_fmt(w, precision)}" height="{_fmt(h, precision)}" '
            f'fill="{background}" />'
        )

    # Group-level attributes; per-line strokes only when a palette is set.
    group_attrs = (
        f'stroke-width="{_fmt(style.stroke_width, precision)}" '
        f'stroke-linecap="{style.stroke_linecap}"'
    )
    if not style.palette:
        group_attrs = f'stroke="{style.stroke}" ' + group_attrs
    if flip_y:
        # Flip about y = (miny + maxy) so the viewBox still covers the drawing.
        flip_y_line = _fmt(miny + maxy, precision)
        group_attrs += f' transform="translate(0,{flip_y_line}) scale(1,-1)"'
    lines.append(f"  <g {group_attrs}>")

    count = len(segments)
    for i, seg in enumerate(segments):
        stroke_attr = (
            f' stroke="{style.stroke_for(i, count)}"' if style.palette else ""
        )
        lines.append(
            f'    <line x1="{_fmt(seg.x0, precision)}" y1="{_fmt(seg.y0, precision)}" '
            f'x2="{_fmt(seg.x1, precision)}" y2="{_fmt(seg.y1, precision)}"'
            f"{stroke_attr} />"
        )

    lines.append("  </g>")
    lines.append("</svg>")

    _ensure_parent_dir(out_path)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
        f.write("\n")
    logger.info("wrote %d segments to %s", count, out_path)


def write_segments_csv(segments: list[LineSegment], out: TextIO) -> None:
    fieldnames = ["x0", "y0", "x1", "y1"]
    if segments and segments[0].has_extra_info:
        fieldnames += ["length", "heading", "depth"]
    writer = csv.DictWriter(out, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    for seg in segments:
        writer.writerow(seg.as_dict())


# -------------------------
# Config parsing
# -------------------------


def parse_config(obj: dict[str, Any]) -> RenderConfig:
    obj = _as_dict(obj, "root")

    name = _as_str(obj.get("name", "L-System"), "name")
    axiom = _as_str(obj.get("axiom", ""), "axiom")
    _require(len(axiom) > 0, "axiom must be non-empty")

    iterations = _as_int(obj.get("iterations", 1), "iterations")

    rules_obj = _as_dict(obj.get("rules", {}), "rules")
    rules: dict[str, str] = {}
    for k, v in rules_obj.items():
        _require(
            isinstance(k, str) and len(k) == 1,
            "rules keys must be single-character strings",
        )
        rules[k] = _as_str(v, f"rules['{k}']")

    # Raises InvalidArgumentError for iterations < 1.
    grammar = Grammar(axiom=axiom, rules=rules, iterations=iterations)

    turtle = _as_dict(obj.get("turtle", {}), "turtle")
    _require("angle" in turtle, "turtle.angle is required")
    angle_deg = _as_float(turtle["angle"], "turtle.angle")
    heading_deg = _as_float(turtle.get("heading", 90), "turtle.heading")
    step = _as_float(turtle.get("step", 1), "turtle.step")
    _require(step > 0, "turtle.step must be > 0")
    draw_aliases = _as_symbols(turtle.get("draw_aliases", ""), "turtle.draw_aliases")

    output = _as_dict(obj.get("output", {}), "output")
    extra_info = _as_bool(output.get("extra_info", False), "output.extra_info")
    dedupe = _as_bool(
        output.get("remove_duplicates", True), "output.remove_duplicates"
    )

    svg = _as_dict(obj.get("svg", {}), "svg")
    margin = _as_float(svg.get("margin", 1), "svg.margin")
    precision = _as_int(svg.get("precision", 3), "svg.precision")
    _require(0 <= precision <= 10, "svg.precision must be between 0 and 10")
    flip_y = _as_bool(svg.get("flip_y", True), "svg.flip_y")

    width = svg.get("width")
    height = svg.get("height")
    if width is not None:
        width = _as_float(width, "svg.width")
        _require(width > 0, "svg.width must be > 0")
    if height is not None:
        height = _as_float(height, "svg.height")
        _require(height > 0, "svg.height must be > 0")

    style_obj = _as_dict(svg.get("style", {}), "svg.style")
    palette_obj = style_obj.get("palette", [])
    _require(isinstance(palette_obj, list), "svg.style.palette must be a list")
    style = SvgStyle(
        stroke=_as_str(style_obj.get("stroke", "#000"), "svg.style.stroke"),
        stroke_width=_as_float(
            style_obj.get("stroke_width", 1.0), "svg.style.stroke_width"
        ),
        stroke_linecap=_as_str(
            style_obj.get("stroke_linecap", "round"), "svg.style.stroke_linecap"
        ),
        palette=tuple(
            _as_str(c, f"svg.style.palette[{i}]") for i, c in enumerate(palette_obj)
        ),
    )

    background = svg.get("background")
    if background is not None:
        background = _as_str(background, "svg.background")

    return RenderConfig(
        name=name,
        grammar=grammar,
        angle_deg=angle_deg,
        heading_deg=heading_deg,
        step=step,
        draw_aliases=draw_aliases,
        extra_info=extra_info,
        remove_duplicates=dedupe,
        margin=margin,
        precision=precision,
        flip_y=flip_y,
        width=width,
        height=height,
        style=style,
        background=background,
    )


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            return cast(dict[str, Any], json.load(f))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
INSTRUCTIONS

  F      draw a line of the current step length in the current direction
  + -    turn by +angle / -angle
  [ ]    save / restore position, angle, heading and step length
  @<n>   multiply the step length by the number n, e.g. "@.7" or "@2"
  !      flip the turn direction (the sign of angle)

  Every other symbol is ignored by the turtle and only takes part in rewriting.

INPUT JSON SYNTAX

  name: string (optional)
      Written into the SVG <title>.

  axiom: string (required)
      The initial word.

  iterations: integer >= 1 (default 1)
      Number of rewriting steps.

  rules: object mapping single-character string -> string (optional)
      Production rules, applied to all symbols of a generation at once.
      Symbols without a rule rewrite to themselves.

  turtle: object
    turtle.angle: number degrees (required)
        Turn increment for "+" and "-".
    turtle.heading: number degrees (default 90)
        Initial heading; 0 = +X, 90 = +Y.
    turtle.step: number > 0 (default 1)
        Initial step length.
    turtle.draw_aliases: string or list of characters (optional)
        Symbols that are replaced with "F" after expansion, e.g. "G".

  output: object (optional)
    output.extra_info: boolean (default false)
        Record length, heading and stack depth for every segment.
    output.remove_duplicates: boolean (default true)
        Drop exact duplicate segments. A line from A to B is not a duplicate
        of a line from B to A.

  svg: object (optional)
    svg.margin: number (default 1)
    svg.precision: integer 0..10 (default 3)
    svg.flip_y: boolean (default true)
    svg.width / svg.height: number (optional)
    svg.background: string color (optional)
    svg.style.stroke: string (default "#000")
    svg.style.stroke_width: number (default 1)
    svg.style.stroke_linecap: string (default "round")
    svg.style.palette: list of colors (optional)
        Colors spread evenly over the segments in drawing order.

Example (dragon curve):

    {
      "axiom": "FX",
      "iterations": 12,
      "rules": {"X": "X+YF+", "Y": "-FX-Y"},
      "turtle": {"angle": 90, "heading": 0}
    }
"""


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lsystem_segments.py",
        description="Expand L-systems and turn them into line segments or SVG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )
    p.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging verbosity (default: WARNING).",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser("render", help="Render an L-system JSON config to SVG.")
    pr.add_argument("config", help="Path to the input JSON config.")
    pr.add_argument("output", help="Path to write the SVG output.")

    pv = sub.add_parser(
        "validate", help="Validate a JSON config and print a brief summary."
    )
    pv.add_argument("config", help="Path to the input JSON config.")

    pe = sub.add_parser("expand", help="Print the expanded instruction string.")
    pe.add_argument("config", help="Path to the input JSON config.")
    pe.add_argument(
        "--raw",
        action="store_true",
        help="Do not replace draw aliases with 'F'.",
    )

    ps = sub.add_parser("segments", help="Write the line segments as CSV.")
    ps.add_argument("config", help="Path to the input JSON config.")
    ps.add_argument(
        "output", nargs="?", default=None, help="CSV path (default: stdout)."
    )

    return p


# -------------------------
# Commands
# -------------------------


def cmd_render(config_path: str, output_path: str) -> None:
    cfg = parse_config(load_json(config_path))
    write_svg(
        cfg.segments(),
        out_path=output_path,
        margin=cfg.margin,
        precision=cfg.precision,
        flip_y=cfg.flip_y,
        width=cfg.width,
        height=cfg.height,
        style=cfg.style,
        background=cfg.background,
        title=cfg.name,
    )


_VALIDATE_SYMBOL_LIMIT = 10_000


def _prefix_end(symbols: str, limit: int) -> int:
    """Index at which to cut ``symbols`` without splitting an "@" argument."""
    if len(symbols) <= limit:
        return len(symbols)
    at = symbols.rfind(SCALE, 0, limit)
    if at == -1 or any(ch not in ".0123456789" for ch in symbols[at + 1 : limit]):
        return limit
    return at + 1 + scan_number(symbols, at + 1)[1]


def cmd_validate(config_path: str) -> None:
    cfg = parse_config(load_json(config_path))
    g = cfg.grammar

    print(f"name: {cfg.name}")
    print(f"axiom length: {len(g.axiom)}")
    print(f"iterations: {g.iterations}")
    print(f"rules: {len(g.rules)}")
    print(
        "turtle: "
        f"angle={cfg.angle_deg} heading={cfg.heading_deg} step={cfg.step} "
        f"draw_aliases={''.join(cfg.draw_aliases) or '-'}"
    )

    # Interpret a bounded prefix so huge expansions are still checked quickly.
    symbols = translate_aliases(g.expand(), cfg.draw_aliases)
    bounded = symbols[: _prefix_end(symbols, _VALIDATE_SYMBOL_LIMIT)]
    truncated = len(symbols) > _VALIDATE_SYMBOL_LIMIT
    print(f"symbols: {len(symbols)}")
    if truncated and DRAW not in bounded:
        print(
            f"warning: no '{DRAW}' in the first {_VALIDATE_SYMBOL_LIMIT} symbols; "
            "interpretation skipped"
        )
        return
    segments = interpret(
        bounded,
        radians(cfg.angle_deg),
        initial_heading=radians(cfg.heading_deg),
        step=cfg.step,
        extra_info=True,
    )
    max_depth = max(cast(int, s.depth) for s in segments)
    print(f"segments: {len(segments)}")
    print(f"max depth: {max_depth}")
    if truncated:
        print(
            f"warning: expansion exceeds {_VALIDATE_SYMBOL_LIMIT} symbols; "
            "segment stats are based on the first portion only"
        )


def cmd_expand(config_path: str, raw: bool) -> None:
    cfg = parse_config(load_json(config_path))
    if raw:
        print(cfg.grammar.expand())
    else:
        print(cfg.instructions())


def cmd_segments(config_path: str, output_path: str | None) -> None:
    cfg = parse_config(load_json(config_path))
    segments = cfg.segments()
    if output_path is None:
        write_segments_csv(segments, sys.stdout)
        return
    _ensure_parent_dir(output_path)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        write_segments_csv(segments, f)


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.cmd == "render":
            cmd_render(args.config, args.output)
        elif args.cmd == "validate":
            cmd_validate(args.config)
        elif args.cmd == "expand":
            cmd_expand(args.config, args.raw)
        elif args.cmd == "segments":
            cmd_segments(args.config, args.output)
        else:
            raise AssertionError("unreachable")
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except LSystemError as e:
        print(f"L-system error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
