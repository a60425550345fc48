from __future__ import annotations
import argparse

import uvicorn

from .main import create_app
from .services.source import replay_lines
from .settings import settings


def main(argv=None):
    ap = argparse.ArgumentParser(description="Stream sensor device lines to live viewers and log sessions.")
    ap.add_argument("--port", default=settings.serial_port, help="Serial port (e.g. /dev/ttyUSB0, COM4)")
    ap.add_argument("--baud", type=int, default=settings.baud_rate, help="Baud rate (default: %(default)s)")
    ap.add_argument("--replay", default=None, help="Read lines from a captured log file instead of the device")
    ap.add_argument("--replay-delay", type=float, default=0.5, help="Seconds between replayed lines")
    ap.add_argument("--log-file", default=settings.log_file, help="Session log path (default: %(default)s)")
    ap.add_argument("--static-dir", default=settings.static_dir, help="Directory served at /")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--http-port", type=int, default=3000)
    args = ap.parse_args(argv)

    cfg = settings.model_copy(update={
        "serial_port": args.port,
        "baud_rate": args.baud,
        "log_file": args.log_file,
        "static_dir": args.static_dir,
    })
    line_source = None
    if args.replay:
        line_source = lambda: replay_lines(args.replay, delay=args.replay_delay)

    app = create_app(cfg, line_source=line_source)
    uvicorn.run(app, host=args.host, port=args.http_port, log_level=cfg.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
