import argparse
import logging

from . import pipeline, validation
from .compositing import composite
from .config import PARAM_RANGES
from .errors import InternalInvariantViolation, StampVisionError, user_message
from .loader import load_path
from .models import CompositeLayer, ProcessedImage
from .presets import CUSTOM, ParameterModel, SIGNATURE_PRESETS, list_presets
from .recolor import apply_seal_color
from .seal import render_system_seal, stack_seal_and_signature
from .utils import read_bytes_any_path, save_bytes_any_path

logger = logging.getLogger(__name__)

_KNOBS = ["threshold", "stroke_strength", "edge_smoothness", "noise_removal", "saturation_filter"]


def _load_raw(path: str):
    try:
        return load_path(path)
    except FileNotFoundError:
        print(f"Failed to read: {path}")
    except StampVisionError as exc:
        print(f"Rejected {path}: {user_message(exc)}")
    return None


def _load_processed(path: str):
    raw = _load_raw(path)
    return None if raw is None else ProcessedImage.from_rgba(raw.pixels)


def _save(path: str, image: ProcessedImage) -> int:
    if not save_bytes_any_path(path, image.to_png()):
        print(f"Failed to save: {path}")
        return 3
    print(f"Saved: {path}")
    return 0


def parse_layer_spec(spec: str):
    """``path[@x,y[,w,h[,top,height]]]`` -> (path, anchor, bounds, band)."""
    path, _, placement = spec.rpartition("@") if "@" in spec else (spec, "", "")
    if not placement:
        return spec, (0, 0), None, None
    numbers = [int(v) for v in placement.split(",")]
    if len(numbers) not in (2, 4, 6):
        raise ValueError(f"Bad layer placement {placement!r}: expected 2, 4 or 6 integers")
    anchor = (numbers[0], numbers[1])
    bounds = (numbers[2], numbers[3]) if len(numbers) >= 4 else None
    band = (numbers[4], numbers[5]) if len(numbers) == 6 else None
    return path, anchor, bounds, band


def cmd_process(args: argparse.Namespace) -> int:
    raw = _load_raw(args.input)
    if raw is None:
        return 2

    model = ParameterModel()
    if args.preset:
        model.select_preset(args.preset)
    for knob in _KNOBS + ["stroke_thickness", "contrast_factor", "ink_color"]:
        value = getattr(args, knob)
        if value is None:
            continue
        try:
            model.edit_field(knob, value)
        except ValueError as exc:
            print(str(exc))
            return 2
    model.set_advanced(args.advanced)
    model.set_fine_tune(args.fine_tune)
    params = model.effective_params()
    logger.info("Processing %s with preset %s: %s", args.input, model.preset, params.to_dict())

    try:
        image = pipeline.process(raw, params)
    except InternalInvariantViolation as exc:
        print(user_message(exc))
        return 4
    return _save(args.output, image)


def cmd_presets(args: argparse.Namespace) -> int:
    for preset in list_presets():
        values = ", ".join(f"{k}={v}" for k, v in preset.params.to_dict().items())
        print(f"{preset.name:14s} {preset.label:16s} {values}")
    return 0


def cmd_composite(args: argparse.Namespace) -> int:
    layers = []
    for spec in args.layers:
        try:
            path, anchor, bounds, band = parse_layer_spec(spec)
        except ValueError as exc:
            print(str(exc))
            return 2
        image = _load_processed(path)
        if image is None:
            return 2
        layers.append(CompositeLayer(image=image, anchor=anchor, bounds=bounds, band=band))
    try:
        result = composite(layers)
    except StampVisionError as exc:
        print(user_message(exc))
        return 2
    return _save(args.output, result)


def cmd_seal(args: argparse.Namespace) -> int:
    seal = _load_processed(args.seal)
    signature = _load_processed(args.signature)
    if seal is None or signature is None:
        return 2
    return _save(args.output, stack_seal_and_signature(seal, signature, background=args.background))


def cmd_system_seal(args: argparse.Namespace) -> int:
    signature = None
    if args.signature:
        signature = _load_processed(args.signature)
        if signature is None:
            return 2
    try:
        seal = render_system_seal(args.name, args.cmp, title=args.title, signature=signature, color=args.color)
    except ValueError as exc:
        print(str(exc))
        return 2
    return _save(args.output, seal)


def cmd_recolor(args: argparse.Namespace) -> int:
    image = _load_processed(args.input)
    if image is None:
        return 2
    try:
        recolored = apply_seal_color(image, args.color)
    except ValueError as exc:
        print(str(exc))
        return 2
    return _save(args.output, recolored)


def cmd_validate(args: argparse.Namespace) -> int:
    data = read_bytes_any_path(args.input)
    if data is None:
        print(f"Failed to read: {args.input}")
        return 2
    if validation.is_valid_signature(data):
        print("Signature OK")
        return 0
    print(validation.SIGNATURE_VALIDATION_ERROR)
    return 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="stamp-vision", description="Signature and seal stamp processing")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("process", help="Turn a signature/seal photo into a transparent stamp")
    sp.add_argument("--input", required=True, help="PNG or JPEG input")
    sp.add_argument("--output", required=True, help="PNG output")
    sp.add_argument("--preset", choices=list(SIGNATURE_PRESETS), default=None,
                    help=f"Start from a preset (default {CUSTOM})")
    sp.add_argument("--fine-tune", type=float, default=50.0, help="Simple-mode cleanup knob 0-100")
    sp.add_argument("--advanced", action="store_true", help="Ignore --fine-tune, use the knobs as given")
    for knob in _KNOBS:
        low, high = PARAM_RANGES[knob]
        sp.add_argument(f"--{knob.replace('_', '-')}", type=float, default=None,
                        help=f"{low:g}-{high:g}")
    sp.add_argument("--stroke-thickness", type=int, default=None, help="-2..2, dilation/erosion steps")
    sp.add_argument("--contrast-factor", type=float, default=None, help="1.0-3.0")
    sp.add_argument("--ink-color", default=None, help="#rrggbb, black or dark_blue")
    sp.set_defaults(func=cmd_process)

    sp = sub.add_parser("presets", help="List presets")
    sp.set_defaults(func=cmd_presets)

    sp = sub.add_parser("composite", help="Paint layers over the first one")
    sp.add_argument("--output", required=True)
    sp.add_argument("layers", nargs="+", help="path[@x,y[,w,h[,band_top,band_height]]]")
    sp.set_defaults(func=cmd_composite)

    sp = sub.add_parser("seal", help="Stack a seal above a signature")
    sp.add_argument("--seal", required=True)
    sp.add_argument("--signature", required=True)
    sp.add_argument("--background", default=None, help="Opaque background color, transparent if omitted")
    sp.add_argument("--output", required=True)
    sp.set_defaults(func=cmd_seal)

    sp = sub.add_parser("system-seal", help="Draw the standard medical seal")
    sp.add_argument("--name", required=True)
    sp.add_argument("--cmp", required=True, help="Medical registry number")
    sp.add_argument("--title", default=None)
    sp.add_argument("--signature", default=None, help="Processed signature PNG to embed")
    sp.add_argument("--color", default=None, help="Seal color, default #003366")
    sp.add_argument("--output", required=True)
    sp.set_defaults(func=cmd_system_seal)

    sp = sub.add_parser("recolor", help="Repaint a processed stamp in a seal color")
    sp.add_argument("--input", required=True)
    sp.add_argument("--color", required=True)
    sp.add_argument("--output", required=True)
    sp.set_defaults(func=cmd_recolor)

    sp = sub.add_parser("validate", help="Reject blank signatures")
    sp.add_argument("--input", required=True)
    sp.set_defaults(func=cmd_validate)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s:%(name)s:%(message)s")
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
