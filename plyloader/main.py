import argparse
import json
import logging
import sys
from concurrent.futures import ProcessPoolExecutor
from datetime import datetime
from itertools import repeat
from pathlib import Path

from tqdm import tqdm

from plyloader.errors import LoadError, PlyError
from plyloader.mesh import process
from plyloader.ply_io import PlyLoader

logger = logging.getLogger(__name__)

BLUE = "\033[94m"
RESET = "\033[0m"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Parse and inspect PLY mesh files")
    parser.add_argument("paths", nargs="*", help="PLY files to parse")
    parser.add_argument("--folder", help="Also parse every *.ply file in this folder")
    parser.add_argument("--threads", type=int, default=1, help="Worker processes used for parsing")
    parser.add_argument("--log-file", help="Optional log file that receives one line per parsed file")
    parser.add_argument("--json", action="store_true", help="Print per-file summaries as JSON")
    parser.add_argument(
        "--allow-empty",
        action="store_true",
        help="Accept meshes without positions or indices instead of reporting them as failures",
    )
    return parser.parse_args(argv)


def _append_log(log_file, text):
    """Append text to a log file safely."""
    if not log_file:
        return
    try:
        with open(log_file, "a") as f:
            f.write(text + "\n")
    except OSError as e:
        logger.error(f"Failed writing to log file {log_file}: {e}")


def collect_paths(paths, folder=None):
    collected = [Path(p) for p in paths]
    if folder:
        collected.extend(sorted(Path(folder).glob("*.ply")))
    return collected


def _inspect_file(path, allow_empty):
    """Worker: parse one file and return (path, summary, error)."""
    loader = PlyLoader()
    try:
        header, mesh = loader.read_document(path)
        if not allow_empty:
            process(mesh)
    except (LoadError, PlyError) as e:
        return str(path), None, f"{type(e).__name__}: {e}"

    summary = header.summary()
    summary.update({
        "positions": len(mesh.positions),
        "normals": len(mesh.normals),
        "texcoords": len(mesh.texcoords),
        "colors": len(mesh.colors),
        "indices": len(mesh.indices),
    })
    frame = mesh.vertex_frame()
    if not frame.empty and {"x", "y", "z"} <= set(frame.columns):
        xyz = frame[["x", "y", "z"]]
        summary["bounds"] = {"min": xyz.min().tolist(), "max": xyz.max().tolist()}
    return str(path), summary, None


def inspect_files(paths, threads=1, allow_empty=False, log_file=None):
    """Parse every path; returns {path: summary} and {path: error message}."""
    summaries, failures = {}, {}
    _append_log(log_file, f"[INFO] Parsing {len(paths)} PLY file(s) with {threads} worker(s)")

    if threads <= 1:
        results = (_inspect_file(p, allow_empty) for p in paths)
        for path, summary, err in tqdm(results, total=len(paths), desc="Parsing PLY"):
            _record(path, summary, err, summaries, failures, log_file)
    else:
        with ProcessPoolExecutor(max_workers=threads) as exe:
            results = exe.map(_inspect_file, paths, repeat(allow_empty))
            for path, summary, err in tqdm(results, total=len(paths), desc="Parsing PLY"):
                _record(path, summary, err, summaries, failures, log_file)

    _append_log(log_file, f"{BLUE}--- Parsed {len(summaries)} file(s), {len(failures)} failure(s) ---{RESET}")
    return summaries, failures


def _record(path, summary, err, summaries, failures, log_file):
    if err:
        msg = f"[ERROR] Failed file {path}: {err}"
        logger.error(msg)
        _append_log(log_file, msg)
        failures[path] = err
    else:
        _append_log(log_file, f"[INFO] Finished file {path}")
        summaries[path] = summary


def _print_summary(path, summary):
    print(f"{path}: {summary['format']} {summary['version']}")
    print(f"  vertices={summary['vertexCount']} faces={summary['faceCount']} indices={summary['indices']}")
    channels = [name for name in ("normals", "texcoords", "colors") if summary[name]]
    print(f"  channels: positions{''.join(', ' + c for c in channels)}")
    if "bounds" in summary:
        print(f"  bounds: {summary['bounds']['min']} .. {summary['bounds']['max']}")


def main(argv=None):
    logging.basicConfig(level=logging.INFO)
    args = parse_args(argv)

    if args.threads <= 0:
        logger.error("threads must be positive.")
        return 2

    paths = collect_paths(args.paths, args.folder)
    if not paths:
        logger.error("No PLY files given; pass paths or --folder.")
        return 2

    if args.log_file:
        Path(args.log_file).parent.mkdir(parents=True, exist_ok=True)
        _append_log(args.log_file, f"\n=== PLY INSPECTION - {datetime.now().strftime('%Y-%m-%d_%H-%M-%S')} ===")

    summaries, failures = inspect_files(paths, args.threads, args.allow_empty, args.log_file)

    if args.json:
        print(json.dumps({"files": summaries, "errors": failures}, indent=2))
    else:
        for path, summary in summaries.items():
            _print_summary(path, summary)
        for path, err in failures.items():
            print(f"{path}: FAILED ({err})")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
