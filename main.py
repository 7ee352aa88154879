"""
Headless front-end: probes ffmpeg, builds the encoding configuration
from the command line, then runs the resulting jobs one by one while
printing their progress.

    python main.py --codec hevc --encoder hevc_nvenc --mode vbr-cq \\
        --option cq=24 clip1.mov clip2.mov
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QTimer

from vencoder.capabilities import get_available_codecs, get_pixel_formats
from vencoder.config import load_settings
from vencoder.errors import VencoderError
from vencoder.oshelper import ConsoleNotifier, play_file
from vencoder.overseer import JobOverseer
from vencoder.params import (
    SetAudioBitrate,
    SetCrf,
    SetCustomExt,
    SetFastStart,
    SetUserOptions,
    SetVideoBitrate,
)
from vencoder.paths import resolve_binaries, validate_binaries
from vencoder.session import ConfigurationSession
from vencoder.store import QueueStore

logger = logging.getLogger("vencoder")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert videos with ffmpeg")
    parser.add_argument("files", nargs="*", type=Path, help="Videos to convert")

    parser.add_argument("--list-codecs", action="store_true",
                        help="List the video codecs this ffmpeg can encode and exit")
    parser.add_argument("--all-codecs", action="store_true",
                        help="Do not restrict the codec list to the common ones")

    video = parser.add_argument_group("video")
    video.add_argument("--codec", default="h264", help="Target video codec (default: h264)")
    video.add_argument("--encoder", help="Encoder for the codec (default: the codec's first)")
    video.add_argument("--mode", help="Rate-control mode of the encoder")
    video.add_argument("--option", action="append", default=[], metavar="NAME=VALUE",
                       help="Encoder option, may be repeated")
    video.add_argument("--crf", type=int, help="Constant rate factor")
    video.add_argument("--bitrate", type=int, help="Video bitrate in kbps")
    video.add_argument("--pix-fmt", help="Output pixel format")

    audio = parser.add_argument_group("audio")
    audio.add_argument("--audio-codec", help="Audio codec (default: copy)")
    audio.add_argument("--audio-encoder", help="Encoder for the audio codec (default: the codec's first)")
    audio.add_argument("--audio-bitrate", type=int, help="Audio bitrate in kbps")

    output = parser.add_argument_group("output")
    output.add_argument("--ext", default="", help="Output container extension")
    output.add_argument("--faststart", action="store_true",
                        help="Move the mp4 index to the front of the file")
    output.add_argument("--output-folder", type=Path, help="Where converted files go")
    output.add_argument("--global-opts", default="", help="Extra global ffmpeg flags")
    output.add_argument("--input-opts", default="", help="Extra input ffmpeg flags")
    output.add_argument("--output-opts", default="", help="Extra output ffmpeg flags")
    output.add_argument("-y", "--yes", action="store_true", default=None,
                        help="Overwrite existing outputs without asking")

    parser.add_argument("--dry-run", action="store_true",
                        help="Print the commands instead of running them")
    parser.add_argument("--play", action="store_true",
                        help="Preview the converted file when a single conversion succeeds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def parse_option(text: str) -> tuple[str, object]:
    """'cq=24' → ('cq', 24); 'temporal_aq=false' → ('temporal_aq', False)"""
    name, sep, raw = text.partition("=")
    if not sep or not name:
        raise ValueError(f"Expected NAME=VALUE, got '{text}'")
    lowered = raw.strip().lower()
    if lowered in ("true", "yes", "on"):
        return name.strip(), True
    if lowered in ("false", "no", "off"):
        return name.strip(), False
    try:
        return name.strip(), int(raw)
    except ValueError:
        return name.strip(), raw.strip()


def configure(session: ConfigurationSession, args: argparse.Namespace) -> None:
    session.select_codec(args.codec)
    if args.encoder:
        session.select_encoder(args.encoder)
    if args.mode:
        session.select_mode(args.mode)
    for text in args.option:
        session.set_policy_option(*parse_option(text))

    patches = [
        SetCustomExt(args.ext),
        SetFastStart(args.faststart),
        SetUserOptions("global", args.global_opts),
        SetUserOptions("input", args.input_opts),
        SetUserOptions("output", args.output_opts),
    ]
    if args.crf is not None:
        patches.append(SetCrf(args.crf))
    if args.bitrate is not None:
        patches.append(SetVideoBitrate(args.bitrate))
    if args.audio_bitrate is not None:
        patches.append(SetAudioBitrate(args.audio_bitrate))
    if args.audio_codec or args.audio_encoder:
        session.select_audio_codec(args.audio_codec, args.audio_encoder)
    session.update(*patches)
    if args.pix_fmt:
        session.set_pixel_format(args.pix_fmt)


def run_queue(session: ConfigurationSession, notifier: ConsoleNotifier, args) -> int:
    store = QueueStore()
    queue = session.prepare_batch(args.files)
    if args.dry_run:
        for item in queue:
            print(item.command)
        return 0
    if not queue:
        print("Nothing to convert.")
        return 0
    store.save(queue)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    overseer = JobOverseer(notifier)
    names = {item.job_id: Path(item.input_file).name for item in queue}

    overseer.job_started.connect(lambda job_id: print(f"Converting {names[job_id]}"))
    overseer.job_progress.connect(
        lambda job_id, pct: print(f"\r  {names[job_id]}: {pct:5.1f}%", end="", flush=True)
    )
    overseer.job_finished.connect(lambda job_id, code: print())
    overseer.batch_finished.connect(lambda summary: app.quit())

    # Ctrl+C cancels the batch; the timer lets Python see the signal
    # while Qt's event loop is running.
    signal.signal(signal.SIGINT, lambda *_: overseer.cancel_all())
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(200)

    summary = overseer.start_batch(queue)
    if not summary.settled:
        app.exec()
    heartbeat.stop()
    store.clear()

    if args.play and len(queue) == 1 and summary.succeeded == 1:
        play_file(session.output_path_for(Path(queue[0].input_file)), session.settings, session.binaries)
    return 0 if summary.unsuccessful == 0 else 1


def _print_codecs(codecs) -> None:
    for codec in codecs:
        encoders = ", ".join(codec.encoders) or codec.short_name
        print(f"  {codec.short_name:<12} {codec.description}  [{encoders}]")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(name)s] %(message)s",
    )

    settings = load_settings()
    if args.output_folder is not None:
        settings.output_folder = args.output_folder.expanduser()
    if args.all_codecs:
        settings.show_common_codecs = False

    binaries = resolve_binaries(settings)
    problems = validate_binaries(binaries)
    if problems:
        for problem in problems:
            logger.error(problem)
        return 2

    notifier = ConsoleNotifier(assume_yes=args.yes)
    try:
        codecs = get_available_codecs(binaries.ffmpeg)
        pixel_formats = get_pixel_formats(binaries.ffmpeg)
        session = ConfigurationSession(codecs, pixel_formats, settings, notifier, binaries)

        if args.list_codecs:
            print("Video:")
            _print_codecs(session.available_codecs())
            print("Audio:")
            _print_codecs(session.available_audio_codecs())
            return 0

        configure(session, args)
        if not args.files:
            print(session.command)
            return 0
        return run_queue(session, notifier, args)
    except (ValueError, OSError, VencoderError) as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
