import argparse
import logging
import os

from gifanim import DEFAULT_DURATION, AnimGif, DisposalMethod, GifAnimException


def prepare_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=(
        "A tool for assembling images into an animated GIF. Sources are "
        "image files, URLs, or a single directory whose files are used in "
        "name order."
    ))

    parser.add_argument("sources", nargs="*", help=(
        "The images to animate, in frame order. Use \"help\" for more "
        "information on timing and disposal."
    ))

    parser.add_argument("--output", "-o", type=str, default=None, help=(
        "The path to write the animated GIF to."
    ))

    parser.add_argument("--duration", "-d", type=int, action="append", default=None, help=(
        "Frame delay in 1/100 s. May be repeated, one per frame. Frames "
        "without a value reuse the last one given. Default is 10."
    ))

    parser.add_argument("--loop", "-l", type=int, default=0, help=(
        "Number of times the animation repeats. 0, the default, loops forever."
    ))

    parser.add_argument("--disposal", type=int, action="append", default=None, help=(
        "Disposal method, 0-7. May be repeated, one per frame. Frames "
        "without a value use 0."
    ))

    parser.add_argument("--width", type=int, default=None, help=(
        "Canvas width. Defaults to the width of the first frame."
    ))
    parser.add_argument("--height", type=int, default=None, help=(
        "Canvas height. Defaults to the height of the first frame."
    ))

    parser.add_argument("--no-urls", dest="allow_urls", action="store_false", help=(
        "Refuse to fetch sources that look like URLs."
    ))

    parser.add_argument("--verbose", "-v", action="store_true", help=(
        "Log how every frame is parsed and which palette it ends up with."
    ))

    return parser


HELP_TEXT = """Timing:
    --duration sets the delay after each frame in hundredths of a second.
    Giving it once applies the value to every frame.

Disposal methods:
    {}
    4-7 are undefined by GIF89a but are passed through.
"""


def mode_help() -> None:
    methods = "\n    ".join("{} - {}".format(m.value, m.name) for m in DisposalMethod)
    print(HELP_TEXT.format(methods))


def main() -> None:
    parser = prepare_argparser()
    args = parser.parse_args()

    if args.sources == ["help"]:
        mode_help()
        parser.exit()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s")

    if not args.sources:
        parser.error("Must give at least one source.")

    if args.output is None:
        parser.error("Must specify --output.")

    if len(args.sources) == 1 and os.path.isdir(args.sources[0]):
        frames = args.sources[0]
    else:
        frames = args.sources

    durations = args.duration if args.duration else DEFAULT_DURATION

    anim = AnimGif(allow_urls=args.allow_urls)
    if args.width is not None:
        anim.set_canvas_width(args.width)
    if args.height is not None:
        anim.set_canvas_height(args.height)

    try:
        anim.create(frames, durations, args.loop, args.disposal)
    except GifAnimException as e:
        parser.error(str(e))

    written = anim.save(args.output)
    print("Animation written to {} ({} bytes)".format(args.output, written))


if __name__ == "__main__":
    main()
