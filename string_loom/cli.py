# string_loom/cli.py
import argparse
import logging
from pathlib import Path

from .config import LOG_LEVEL, NUM_PINS, NUM_THREADS, SOLVER_WORKERS
from .errors import InvalidInput
from .export import chords_to_pdf, write_csv
from .preprocess import load_image
from .render import save_threaded
from .string_art import thread_image

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="string-loom",
        description="Approximate an image with straight threads strung between pins on a circle.",
    )
    parser.add_argument("path", type=Path, help="Path to the target image")
    parser.add_argument("-p", "--pins", type=int, default=NUM_PINS,
                        help="Number of pins on the loom (default: %(default)s)")
    parser.add_argument("-t", "--threads", type=int, default=NUM_THREADS,
                        help="Maximum number of threads used (default: %(default)s)")
    parser.add_argument("-r", "--radius", type=int, default=None,
                        help="Radius of the output image in pixels. Clamped to the shorter "
                             "edge of the input, which is also the default")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Output directory. Defaults to the directory of the input image")
    parser.add_argument("-w", "--workers", type=int, default=SOLVER_WORKERS,
                        help="Worker threads scoring candidate chords")
    parser.add_argument("--csv", action="store_true", help="Save thread information to a CSV")
    parser.add_argument("--no-img", action="store_true", help="Skip image generation (requires --csv)")
    parser.add_argument("--write-coords", action="store_true",
                        help="Write the pixel coordinates of both ends of each thread instead "
                             "of pin numbers (requires --csv)")
    parser.add_argument("--header", action="store_true",
                        help="Include a CSV header line: `x1,y1,x2,y2` with --write-coords, "
                             "`from_pin,to_pin` otherwise (requires --csv)")
    parser.add_argument("--pdf", action="store_true",
                        help="Also build printable threading instructions from the pin CSV")
    return parser


def check_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if not args.csv:
        for flag, name in ((args.no_img, "--no-img"), (args.write_coords, "--write-coords"),
                           (args.header, "--header")):
            if flag:
                parser.error(f"{name} requires --csv")

def output_prefix(args: argparse.Namespace) -> Path:
    out_dir = args.output if args.output is not None else args.path.parent
    return out_dir / f"{args.path.stem}_{args.pins}_{args.threads}"


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    check_args(parser, args)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    img = load_image(str(args.path))
    try:
        art = thread_image(img, args.pins, args.threads, args.radius, args.workers)
    except InvalidInput as e:
        parser.error(str(e))

    prefix = output_prefix(args)
    if not args.no_img:
        save_threaded(f"{prefix}_threaded.png", art.render())

    if args.csv:
        csv_path = f"{prefix}_threads.csv"
        write_csv(csv_path, art.chords, write_coords=args.write_coords, header=args.header)

    if args.pdf and art.chords:
        chords_to_pdf(art.chords, f"{prefix}_instructions.pdf")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
